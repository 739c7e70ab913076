"""
Arena duel rules: the three moves and the cyclic beats-table.

EMP beats SHIELD, SHIELD beats LASER, LASER beats EMP.
"""

from enum import StrEnum
from typing import Literal, TypeAlias


class Move(StrEnum):
    EMP = "EMP"
    SHIELD = "SHIELD"
    LASER = "LASER"


# move -> the one move it defeats
BEATS: dict[Move, Move] = {
    Move.EMP: Move.SHIELD,
    Move.SHIELD: Move.LASER,
    Move.LASER: Move.EMP,
}

Winner: TypeAlias = Literal[1, 2] | None


def resolve(move_a: Move, move_b: Move) -> Winner:
    """
    Decide a duel between player 1 (move_a) and player 2 (move_b).

    Return 1 or 2 for the winning side, None for a tie.
    """
    if move_a == move_b:
        return None
    if BEATS[move_a] == move_b:
        return 1
    return 2

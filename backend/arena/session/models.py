import secrets
import string
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

from arena.logic.rules import Move, resolve
from arena.messaging.types import GameResultMessage, MatchMoves, PlayerMove

_BASE36_ALPHABET = string.digits + string.ascii_lowercase
_MATCH_ID_RANDOM_LENGTH = 9


def generate_match_id() -> str:
    """Build an `arena_<unix-millis>_<random base36>` identifier."""
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(_MATCH_ID_RANDOM_LENGTH))
    return f"arena_{time.time_ns() // 1_000_000}_{suffix}"


class MatchState(StrEnum):
    AWAITING_MOVES = "awaiting_moves"
    AWAITING_OPPONENT = "awaiting_opponent"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


@dataclass
class MatchSlot:
    """One side of a match. `move` goes from None to a Move exactly once."""

    connection_id: str
    display_name: str
    move: Move | None = None

    @property
    def has_moved(self) -> bool:
        return self.move is not None


@dataclass
class Match:
    """An active two-player duel.

    Lifecycle:
    - Created when the matchmaking queue pairs two connections
    - Each player's slot receives one move
    - Removed from the match table once resolved, or when either player disconnects
    """

    match_id: str
    player1: MatchSlot
    player2: MatchSlot
    created_at: float = field(default_factory=time.monotonic)

    @property
    def slots(self) -> tuple[MatchSlot, MatchSlot]:
        return self.player1, self.player2

    @property
    def both_moves_in(self) -> bool:
        return self.player1.has_moved and self.player2.has_moved

    @property
    def state(self) -> MatchState:
        moved = sum(1 for slot in self.slots if slot.has_moved)
        if moved == 0:
            return MatchState.AWAITING_MOVES
        if moved == 1:
            return MatchState.AWAITING_OPPONENT
        return MatchState.RESOLVED

    def has_player(self, connection_id: str) -> bool:
        return self.slot_for(connection_id) is not None

    def slot_for(self, connection_id: str) -> MatchSlot | None:
        return next((slot for slot in self.slots if slot.connection_id == connection_id), None)

    def opponent_of(self, connection_id: str) -> MatchSlot | None:
        if self.player1.connection_id == connection_id:
            return self.player2
        if self.player2.connection_id == connection_id:
            return self.player1
        return None


@dataclass(frozen=True)
class MatchResult:
    """Derived outcome of a match whose slots both hold a move. Never stored."""

    match_id: str
    player1: MatchSlot
    player2: MatchSlot
    winner: MatchSlot | None
    loser: MatchSlot | None

    @property
    def is_tie(self) -> bool:
        return self.winner is None

    @classmethod
    def from_match(cls, match: Match) -> Self:
        if match.player1.move is None or match.player2.move is None:
            raise ValueError(f"match {match.match_id} cannot be resolved before both moves are in")
        outcome = resolve(match.player1.move, match.player2.move)
        if outcome == 1:
            winner, loser = match.player1, match.player2
        elif outcome == 2:
            winner, loser = match.player2, match.player1
        else:
            winner = loser = None
        return cls(
            match_id=match.match_id,
            player1=match.player1,
            player2=match.player2,
            winner=winner,
            loser=loser,
        )

    def to_message(self) -> GameResultMessage:
        # both moves are guaranteed set by from_match
        return GameResultMessage(
            match_id=self.match_id,
            moves=MatchMoves(
                player1=PlayerMove(display_name=self.player1.display_name, move=self.player1.move),  # type: ignore[arg-type]
                player2=PlayerMove(display_name=self.player2.display_name, move=self.player2.move),  # type: ignore[arg-type]
            ),
            winner_id=self.winner.connection_id if self.winner else None,
            winner_display_name=self.winner.display_name if self.winner else None,
            is_tie=self.is_tie,
        )

import re

import pytest

from arena.logic.rules import Move
from arena.session.models import Match, MatchResult, MatchSlot, MatchState, generate_match_id

_MATCH_ID_PATTERN = re.compile(r"^arena_\d{13,}_[0-9a-z]{9}$")


def _match(move1: Move | None = None, move2: Move | None = None) -> Match:
    return Match(
        match_id="arena_1_abcdefghi",
        player1=MatchSlot(connection_id="c1", display_name="Nova", move=move1),
        player2=MatchSlot(connection_id="c2", display_name="Zed", move=move2),
    )


class TestGenerateMatchId:
    def test_format(self):
        assert _MATCH_ID_PATTERN.match(generate_match_id())

    def test_ids_are_distinct(self):
        assert len({generate_match_id() for _ in range(200)}) == 200


class TestMatch:
    def test_state_progression(self):
        match = _match()
        assert match.state is MatchState.AWAITING_MOVES
        match.player2.move = Move.EMP
        assert match.state is MatchState.AWAITING_OPPONENT
        assert not match.both_moves_in
        match.player1.move = Move.LASER
        assert match.state is MatchState.RESOLVED
        assert match.both_moves_in

    def test_slot_lookup(self):
        match = _match()
        assert match.slot_for("c1") is match.player1
        assert match.slot_for("c3") is None
        assert match.has_player("c2")
        assert not match.has_player("c3")

    def test_opponent_of(self):
        match = _match()
        assert match.opponent_of("c1") is match.player2
        assert match.opponent_of("c2") is match.player1
        assert match.opponent_of("c3") is None


class TestMatchResult:
    def test_player1_wins(self):
        result = MatchResult.from_match(_match(Move.LASER, Move.EMP))
        assert result.winner.display_name == "Nova"
        assert result.loser.display_name == "Zed"
        assert not result.is_tie

    def test_player2_wins(self):
        result = MatchResult.from_match(_match(Move.LASER, Move.SHIELD))
        assert result.winner.display_name == "Zed"
        assert result.loser.display_name == "Nova"

    def test_tie(self):
        result = MatchResult.from_match(_match(Move.EMP, Move.EMP))
        assert result.is_tie
        assert result.winner is None
        assert result.loser is None

    def test_incomplete_match_cannot_resolve(self):
        with pytest.raises(ValueError, match="cannot be resolved"):
            MatchResult.from_match(_match(Move.EMP, None))

    def test_to_message(self):
        message = MatchResult.from_match(_match(Move.LASER, Move.EMP)).to_message().model_dump()
        assert message == {
            "type": "game_result",
            "match_id": "arena_1_abcdefghi",
            "moves": {
                "player1": {"display_name": "Nova", "move": "LASER"},
                "player2": {"display_name": "Zed", "move": "EMP"},
            },
            "winner_id": "c1",
            "winner_display_name": "Nova",
            "is_tie": False,
        }

    def test_tie_message_has_no_winner(self):
        message = MatchResult.from_match(_match(Move.SHIELD, Move.SHIELD)).to_message()
        assert message.is_tie is True
        assert message.winner_id is None
        assert message.winner_display_name is None

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationInfo, field_validator

from arena.logic.rules import Move

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

MAX_DISPLAY_NAME_LENGTH = 50


def _reject_control_characters(value: str, field_name: str) -> str:
    if any((ord(c) < _SPACE_ORD and c not in ("\t", "\n", "\r")) or ord(c) == _DEL_ORD for c in value):
        raise ValueError(f"{field_name} must not contain control characters")
    return value


class ClientMessageType(StrEnum):
    JOIN_ARENA = "join_arena"
    MAKE_MOVE = "make_move"
    SEND_MESSAGE = "send_message"
    PING = "ping"


class ArenaMessageType(StrEnum):
    WAITING_OPPONENT = "waiting_opponent"
    GAME_START = "game_start"
    MOVE_RECEIVED = "move_received"
    GAME_RESULT = "game_result"
    OPPONENT_LEFT = "opponent_left"
    ERROR = "arena_error"
    RECEIVE_MESSAGE = "receive_message"
    PONG = "pong"


class ArenaErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    INVALID_MOVE = "invalid_move"
    MATCH_NOT_FOUND = "match_not_found"
    NOT_IN_MATCH = "not_in_match"
    MOVE_ALREADY_SUBMITTED = "move_already_submitted"
    ALREADY_IN_MATCH = "already_in_match"
    RATE_LIMITED = "rate_limited"


class JoinArenaMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ARENA] = ClientMessageType.JOIN_ARENA
    display_name: str = Field(max_length=MAX_DISPLAY_NAME_LENGTH)

    @field_validator("display_name")
    @classmethod
    def _validate_display_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display_name is required")
        return _reject_control_characters(v, "display_name")


class MakeMoveMessage(BaseModel):
    """Move tokens are checked by the arena manager so a bad token gets its own error code."""

    type: Literal[ClientMessageType.MAKE_MOVE] = ClientMessageType.MAKE_MOVE
    match_id: str = Field(min_length=1, max_length=100)
    move: str = Field(min_length=1, max_length=16)


class SendChatMessage(BaseModel):
    type: Literal[ClientMessageType.SEND_MESSAGE] = ClientMessageType.SEND_MESSAGE
    username: str = Field(min_length=1, max_length=MAX_DISPLAY_NAME_LENGTH)
    message: str = Field(min_length=1, max_length=1000)
    time: str | None = Field(default=None, max_length=64)

    @field_validator("username", "message")
    @classmethod
    def _validate_text(cls, v: str, info: ValidationInfo) -> str:
        return _reject_control_characters(v, info.field_name)


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    JoinArenaMessage | MakeMoveMessage | SendChatMessage | PingMessage,
    Field(discriminator="type"),
]


class WaitingOpponentMessage(BaseModel):
    type: Literal[ArenaMessageType.WAITING_OPPONENT] = ArenaMessageType.WAITING_OPPONENT


class GameStartMessage(BaseModel):
    """Sent to both players; opponent1/opponent2 are player-1 and player-2 display names."""

    type: Literal[ArenaMessageType.GAME_START] = ArenaMessageType.GAME_START
    match_id: str
    opponent1: str
    opponent2: str


class MoveReceivedMessage(BaseModel):
    type: Literal[ArenaMessageType.MOVE_RECEIVED] = ArenaMessageType.MOVE_RECEIVED
    match_id: str
    waiting_for_opponent: bool = True


class PlayerMove(BaseModel):
    display_name: str
    move: Move


class MatchMoves(BaseModel):
    player1: PlayerMove
    player2: PlayerMove


class GameResultMessage(BaseModel):
    type: Literal[ArenaMessageType.GAME_RESULT] = ArenaMessageType.GAME_RESULT
    match_id: str
    moves: MatchMoves
    winner_id: str | None
    winner_display_name: str | None
    is_tie: bool


class OpponentLeftMessage(BaseModel):
    type: Literal[ArenaMessageType.OPPONENT_LEFT] = ArenaMessageType.OPPONENT_LEFT
    match_id: str


class ArenaErrorMessage(BaseModel):
    type: Literal[ArenaMessageType.ERROR] = ArenaMessageType.ERROR
    code: ArenaErrorCode
    message: str


class ReceiveChatMessage(BaseModel):
    type: Literal[ArenaMessageType.RECEIVE_MESSAGE] = ArenaMessageType.RECEIVE_MESSAGE
    username: str
    message: str
    time: str


class PongMessage(BaseModel):
    type: Literal[ArenaMessageType.PONG] = ArenaMessageType.PONG


_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> JoinArenaMessage | MakeMoveMessage | SendChatMessage | PingMessage:
    """Parse a raw decoded frame into a typed client message.

    Raises pydantic.ValidationError for unknown types or invalid fields.
    """
    return _client_message_adapter.validate_python(data)

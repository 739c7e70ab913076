from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from arena.messaging.types import (
    ArenaErrorCode,
    ArenaErrorMessage,
    JoinArenaMessage,
    MakeMoveMessage,
    PingMessage,
    SendChatMessage,
    parse_client_message,
)
from arena.session.broadcast import send_safely

if TYPE_CHECKING:
    from arena.messaging.protocol import ConnectionProtocol
    from arena.session.chat import ChatService
    from arena.session.manager import ArenaManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes incoming arena messages to the manager and the chat relay.

    Contains no transport code, so it can be driven with mock connections.
    """

    def __init__(self, manager: ArenaManager, chat_service: ChatService) -> None:
        self._manager = manager
        self._chat_service = chat_service

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            await self._send_invalid(connection, str(e))
            return

        if isinstance(message, JoinArenaMessage):
            await self._manager.join_arena(connection, message.display_name)
        elif isinstance(message, MakeMoveMessage):
            await self._handle_make_move(connection, message)
        elif isinstance(message, SendChatMessage):
            await self._chat_service.relay(message.username, message.message, message.time)
        elif isinstance(message, PingMessage):
            await self._manager.handle_ping(connection)

    async def _handle_make_move(self, connection: ConnectionProtocol, message: MakeMoveMessage) -> None:
        try:
            await self._manager.submit_move(connection, message.match_id, message.move)
        except Exception:
            logger.exception(
                "unexpected error while handling move",
                connection_id=connection.connection_id,
                match_id=message.match_id,
            )
            await self._send_invalid(connection, "Move could not be processed")

    async def _send_invalid(self, connection: ConnectionProtocol, reason: str) -> None:
        await send_safely(
            connection,
            ArenaErrorMessage(code=ArenaErrorCode.INVALID_MESSAGE, message=reason).model_dump(),
        )

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._manager.handle_disconnect(connection)
        self._manager.unregister_connection(connection)

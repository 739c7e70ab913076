"""Global chat relay: persist first, then broadcast to every live connection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from arena.messaging.types import ReceiveChatMessage
from arena.session.broadcast import broadcast_to_connections
from shared.dal.models import ChatRecord

if TYPE_CHECKING:
    from arena.session.registry import ConnectionRegistry
    from shared.dal.chat_repository import ChatRepository

logger = structlog.get_logger()


class ChatService:
    def __init__(self, registry: ConnectionRegistry, repository: ChatRepository | None = None) -> None:
        self._registry = registry
        self._repository = repository

    async def relay(self, username: str, message: str, time: str | None = None) -> ReceiveChatMessage:
        """Store and broadcast one chat line.

        A storage failure is logged and the line is still delivered.
        """
        now = datetime.now(UTC)
        if self._repository is not None:
            try:
                await self._repository.save_message(ChatRecord(username=username, message=message, sent_at=now))
            except Exception:
                logger.exception("failed to persist chat message", username=username)

        outbound = ReceiveChatMessage(username=username, message=message, time=time or now.isoformat())
        await broadcast_to_connections(self._registry.connections(), outbound.model_dump())
        return outbound

    async def recent_messages(self, limit: int) -> list[ChatRecord]:
        if self._repository is None:
            return []
        return await self._repository.get_recent_messages(limit)

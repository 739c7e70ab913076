"""Abstract interface for global chat history persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import ChatRecord


class ChatRepository(ABC):
    @abstractmethod
    async def save_message(self, record: ChatRecord) -> None: ...

    @abstractmethod
    async def get_recent_messages(self, limit: int = 50) -> list[ChatRecord]: ...

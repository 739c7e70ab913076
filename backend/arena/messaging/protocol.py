"""Abstract connection protocol for MessagePack binary communication."""

from abc import ABC, abstractmethod
from typing import Any

from arena.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    Abstract interface for one arena client connection.

    The arena manager only talks to connections through this interface,
    so matchmaking and match resolution can be tested without sockets.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Opaque identifier assigned when the connection is accepted."""
        ...

    @property
    @abstractmethod
    def is_alive(self) -> bool:
        """False once the underlying transport has gone away."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        """
        Send a message to the client using MessagePack encoding.
        """
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        """
        Receive a message from the client using MessagePack decoding.
        """
        raw = await self.receive_bytes()
        return decode(raw)

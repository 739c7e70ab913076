"""Live connection registry with a per-connection display name slot."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arena.messaging.protocol import ConnectionProtocol


class ConnectionRegistry:
    """Track live arena connections by connection_id.

    The display name is attached on the first join request and stays fixed
    for the rest of the connection's lifetime.
    """

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionProtocol] = {}
        self._display_names: dict[str, str] = {}  # connection_id -> display name

    def register(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        self._display_names.pop(connection_id, None)

    def get(self, connection_id: str) -> ConnectionProtocol | None:
        return self._connections.get(connection_id)

    def is_alive(self, connection_id: str) -> bool:
        """True only while the connection is registered and its transport is still open."""
        connection = self._connections.get(connection_id)
        return connection is not None and connection.is_alive

    def set_display_name(self, connection_id: str, display_name: str) -> str:
        """Attach a display name once. Return the name in effect for the connection."""
        return self._display_names.setdefault(connection_id, display_name)

    def get_display_name(self, connection_id: str) -> str | None:
        return self._display_names.get(connection_id)

    def connections(self) -> list[ConnectionProtocol]:
        return list(self._connections.values())

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

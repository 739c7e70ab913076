"""Shared send helpers that tolerate dead transports."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from arena.messaging.protocol import ConnectionProtocol


async def send_safely(connection: ConnectionProtocol | None, message: dict[str, Any]) -> bool:
    """Send one message, swallowing transport errors. Return True if the send went through."""
    if connection is None:
        return False
    with contextlib.suppress(RuntimeError, OSError):
        await connection.send_message(message)
        return True
    return False


async def broadcast_to_connections(
    connections: Iterable[ConnectionProtocol | None],
    message: dict[str, Any],
    exclude_connection_id: str | None = None,
) -> None:
    """Send a message to every connection, skipping one if excluded.

    The iterable is snapshotted first so a disconnect that mutates the source
    collection while we yield on a send cannot break the loop.
    """
    for connection in list(connections):
        if connection is None or connection.connection_id == exclude_connection_id:
            continue
        await send_safely(connection, message)

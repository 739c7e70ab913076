from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from arena.messaging.encoder import DecodeError, decode
from arena.messaging.protocol import ConnectionProtocol
from arena.messaging.types import ArenaErrorCode, ArenaErrorMessage
from arena.server.rate_limit import TokenBucket
from arena.session.broadcast import send_safely

logger = structlog.get_logger()

if TYPE_CHECKING:
    from arena.messaging.router import MessageRouter
    from arena.server.settings import ArenaServerSettings

# Disconnect after this many consecutive decode errors
_MAX_DECODE_ERRORS = 5
_CLOSE_TOO_MANY_DECODE_ERRORS = 4004


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())
        self._closed = False

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def is_alive(self) -> bool:
        if self._closed:
            return False
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            self._closed = True
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            self._closed = True
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self._closed = True
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(
    websocket: WebSocket,
    router: MessageRouter,
    settings: ArenaServerSettings,
) -> None:
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    bucket = TokenBucket(rate=settings.rate_limit_rate, burst=settings.rate_limit_burst)
    decode_errors = 0

    try:
        while True:
            raw = await connection.receive_bytes()

            # decode before throttling so garbage frames always count as strikes
            try:
                data = decode(raw)
            except DecodeError as e:
                decode_errors += 1
                logger.warning("decode error", error=str(e), strikes=decode_errors)
                await send_safely(
                    connection,
                    ArenaErrorMessage(code=ArenaErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
                )
                if decode_errors >= _MAX_DECODE_ERRORS:
                    logger.info("too many decode errors, disconnecting")
                    await connection.close(code=_CLOSE_TOO_MANY_DECODE_ERRORS, reason="too_many_decode_errors")
                    return
                continue

            decode_errors = 0

            if not bucket.consume():
                logger.warning("rate limited", retry_after=round(bucket.time_until_available(), 3))
                await send_safely(
                    connection,
                    ArenaErrorMessage(code=ArenaErrorCode.RATE_LIMITED, message="Too many messages").model_dump(),
                )
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()

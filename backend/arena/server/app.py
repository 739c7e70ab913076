from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from arena.messaging.router import MessageRouter
from arena.server.settings import ArenaServerSettings
from arena.server.websocket import websocket_endpoint
from arena.session.chat import ChatService
from arena.session.economy import RepositoryCreditGateway
from arena.session.manager import ArenaManager
from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.db import Database, SqliteChatRepository, SqliteCreditRepository
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

_MAX_CHAT_HISTORY = 200


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def status(request: Request) -> JSONResponse:
    manager: ArenaManager = request.app.state.manager
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "connections": manager.connection_count,
            "player_waiting": manager.waiting_connection_id is not None,
            "active_matches": manager.match_count,
        },
    )


async def recent_messages(request: Request) -> JSONResponse:
    chat_service: ChatService = request.app.state.chat_service
    settings: ArenaServerSettings = request.app.state.settings

    raw_limit = request.query_params.get("limit")
    if raw_limit is None:
        limit = settings.chat_history_limit
    else:
        try:
            limit = int(raw_limit)
        except ValueError:
            return JSONResponse({"error": "limit must be an integer"}, status_code=400)
        if not 1 <= limit <= _MAX_CHAT_HISTORY:
            return JSONResponse({"error": f"limit must be between 1 and {_MAX_CHAT_HISTORY}"}, status_code=400)

    records = await chat_service.recent_messages(limit)
    return JSONResponse(
        {
            "messages": [
                {"username": r.username, "message": r.message, "time": r.sent_at.isoformat()} for r in records
            ],
        },
    )


def create_app(
    settings: ArenaServerSettings | None = None,
    manager: ArenaManager | None = None,
    chat_service: ChatService | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ArenaServerSettings()

    # When the app builds its own manager, it owns the DB lifecycle.
    owned_db: Database | None = None

    if manager is None:
        db = Database(settings.database_path)
        db.connect()
        owned_db = db
        manager = ArenaManager(
            RepositoryCreditGateway(SqliteCreditRepository(db)),
            winner_reward=settings.winner_reward,
            loser_penalty=settings.loser_penalty,
        )
        if chat_service is None:
            chat_service = ChatService(manager.registry, SqliteChatRepository(db))

    if chat_service is None:
        chat_service = ChatService(manager.registry)

    message_router = MessageRouter(manager, chat_service)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router, settings)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/messages", recent_messages, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        yield
        await manager.drain_background_tasks()
        if owned_db is not None:
            owned_db.close()
        logger.info("arena server stopped")

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.manager = manager
    app.state.chat_service = chat_service

    logger.info("arena server ready", winner_reward=settings.winner_reward, loser_penalty=settings.loser_penalty)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory)."""
    _settings = ArenaServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)

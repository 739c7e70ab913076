from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from arena.logic.rules import Move
from arena.messaging.types import (
    ArenaErrorCode,
    ArenaErrorMessage,
    GameStartMessage,
    MoveReceivedMessage,
    OpponentLeftMessage,
    PongMessage,
    WaitingOpponentMessage,
)
from arena.session.broadcast import broadcast_to_connections, send_safely
from arena.session.economy import CreditGateway, NullCreditGateway
from arena.session.models import Match, MatchResult, MatchSlot, MatchState, generate_match_id
from arena.session.queue import MatchmakingQueue
from arena.session.registry import ConnectionRegistry

if TYPE_CHECKING:
    from arena.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()

DEFAULT_WINNER_REWARD = 50
DEFAULT_LOSER_PENALTY = 20


class ArenaManager:
    """
    Coordinator for arena matchmaking and match resolution.

    Owns the connection registry, the single-slot matchmaking queue and the
    match table. Every event handler mutates them under one lock and sends its
    notifications before releasing it, so join, move and disconnect events are
    applied one at a time in arrival order.
    """

    def __init__(
        self,
        credit_gateway: CreditGateway | None = None,
        *,
        winner_reward: int = DEFAULT_WINNER_REWARD,
        loser_penalty: int = DEFAULT_LOSER_PENALTY,
    ) -> None:
        self._credit_gateway = credit_gateway or NullCreditGateway()
        self._winner_reward = winner_reward
        self._loser_penalty = loser_penalty
        self._registry = ConnectionRegistry()
        self._queue = MatchmakingQueue()
        self._matches: dict[str, Match] = {}  # match_id -> Match
        self._lock = asyncio.Lock()
        # strong references so fire-and-forget credit tasks are not garbage collected mid-flight
        self._background_tasks: set[asyncio.Task[bool]] = set()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def connection_count(self) -> int:
        return len(self._registry)

    @property
    def match_count(self) -> int:
        return len(self._matches)

    @property
    def waiting_connection_id(self) -> str | None:
        return self._queue.waiting_connection_id

    @property
    def pending_background_tasks(self) -> int:
        return len(self._background_tasks)

    def get_match(self, match_id: str) -> Match | None:
        return self._matches.get(match_id)

    def find_match_for(self, connection_id: str) -> Match | None:
        """Return the match this connection plays in. A connection is in at most one match."""
        return next((m for m in self._matches.values() if m.has_player(connection_id)), None)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._registry.register(connection)

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._registry.unregister(connection.connection_id)

    async def _send_error(self, connection: ConnectionProtocol, code: ArenaErrorCode, message: str) -> None:
        logger.warning(
            "arena error sent to client",
            connection_id=connection.connection_id,
            error_code=code,
            error_message=message,
        )
        await send_safely(connection, ArenaErrorMessage(code=code, message=message).model_dump())

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await send_safely(connection, PongMessage().model_dump())

    async def join_arena(self, connection: ConnectionProtocol, display_name: str) -> None:
        """Pair the connection with the waiting opponent, or park it as the new waiting entry."""
        display_name = display_name.strip() if display_name else ""
        if not display_name:
            await self._send_error(connection, ArenaErrorCode.INVALID_MESSAGE, "Display name is required")
            return

        connection_id = connection.connection_id
        async with self._lock:
            if self.find_match_for(connection_id) is not None:
                await self._send_error(connection, ArenaErrorCode.ALREADY_IN_MATCH, "You are already in a match")
                return

            display_name = self._registry.set_display_name(connection_id, display_name)
            waiting_id = self._queue.waiting_connection_id

            if waiting_id is None or waiting_id == connection_id or not self._registry.is_alive(waiting_id):
                if waiting_id is not None and waiting_id != connection_id:
                    logger.info("discarding stale waiting entry", stale_connection_id=waiting_id)
                self._queue.park(connection_id)
                logger.info("player waiting for opponent", connection_id=connection_id, display_name=display_name)
                await send_safely(connection, WaitingOpponentMessage().model_dump())
                return

            self._queue.take()
            match = Match(
                match_id=generate_match_id(),
                player1=MatchSlot(
                    connection_id=waiting_id,
                    display_name=self._registry.get_display_name(waiting_id) or "Player 1",
                ),
                player2=MatchSlot(connection_id=connection_id, display_name=display_name),
            )
            self._matches[match.match_id] = match
            logger.info(
                "arena match created",
                match_id=match.match_id,
                player1=match.player1.display_name,
                player2=match.player2.display_name,
            )

            start = GameStartMessage(
                match_id=match.match_id,
                opponent1=match.player1.display_name,
                opponent2=match.player2.display_name,
            )
            await self._broadcast_to_match(match, start.model_dump())

    async def submit_move(self, connection: ConnectionProtocol, match_id: str, move: str) -> None:
        """Record one player's move and resolve the match once both moves are in."""
        try:
            chosen = Move(move)
        except ValueError:
            await self._send_error(
                connection,
                ArenaErrorCode.INVALID_MOVE,
                f"Invalid move. Must be one of {', '.join(m.value for m in Move)}",
            )
            return

        connection_id = connection.connection_id
        async with self._lock:
            match = self._matches.get(match_id)
            if match is None:
                await self._send_error(connection, ArenaErrorCode.MATCH_NOT_FOUND, "Match not found")
                return

            slot = match.slot_for(connection_id)
            if slot is None:
                await self._send_error(connection, ArenaErrorCode.NOT_IN_MATCH, "You are not part of this match")
                return

            if slot.has_moved:
                await self._send_error(
                    connection,
                    ArenaErrorCode.MOVE_ALREADY_SUBMITTED,
                    "Move already submitted for this match",
                )
                return

            slot.move = chosen
            logger.info("move received", match_id=match_id, display_name=slot.display_name, move=chosen)

            if match.state is MatchState.AWAITING_OPPONENT:
                await send_safely(connection, MoveReceivedMessage(match_id=match_id).model_dump())
                return

            # both moves are in: this is the only place a match leaves the table as resolved
            del self._matches[match_id]
            result = MatchResult.from_match(match)
            await self._broadcast_to_match(match, result.to_message().model_dump())
            logger.info(
                "arena match resolved",
                match_id=match_id,
                winner=result.winner.display_name if result.winner else None,
                is_tie=result.is_tie,
            )

        if not result.is_tie:
            self._dispatch_credit_adjustments(result)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Drop the connection from the queue and cancel any match it was playing."""
        connection_id = connection.connection_id
        async with self._lock:
            if self._queue.discard(connection_id):
                logger.info("waiting player disconnected", connection_id=connection_id)

            match = self.find_match_for(connection_id)
            if match is None:
                return

            self._matches.pop(match.match_id, None)
            opponent = match.opponent_of(connection_id)
            if opponent is not None:
                await send_safely(
                    self._registry.get(opponent.connection_id),
                    OpponentLeftMessage(match_id=match.match_id).model_dump(),
                )
            logger.info(
                "arena match cancelled",
                match_id=match.match_id,
                state=MatchState.CANCELLED,
                connection_id=connection_id,
            )

    async def _broadcast_to_match(self, match: Match, message: dict) -> None:
        await broadcast_to_connections(
            [self._registry.get(slot.connection_id) for slot in match.slots],
            message,
        )

    def _dispatch_credit_adjustments(self, result: MatchResult) -> None:
        """Fire the winner reward and loser penalty as independent background tasks.

        Neither task is awaited here; a failure in one never affects the other.
        """
        if result.winner is None or result.loser is None:
            return
        self._spawn_credit_task(result.match_id, result.winner.display_name, self._winner_reward)
        self._spawn_credit_task(result.match_id, result.loser.display_name, -self._loser_penalty)

    def _spawn_credit_task(self, match_id: str, username: str, delta: int) -> None:
        task = asyncio.create_task(self._credit_gateway.adjust_credits(username, delta))
        self._background_tasks.add(task)

        def _on_done(done: asyncio.Task[bool]) -> None:
            self._background_tasks.discard(done)
            if done.cancelled():
                logger.warning("credit adjustment cancelled", match_id=match_id, username=username, delta=delta)
                return
            exc = done.exception()
            if exc is not None:
                logger.error(
                    "credit adjustment raised",
                    match_id=match_id,
                    username=username,
                    delta=delta,
                    exc_info=exc,
                )
            elif not done.result():
                logger.warning("credit adjustment not applied", match_id=match_id, username=username, delta=delta)

        task.add_done_callback(_on_done)

    async def drain_background_tasks(self) -> None:
        """Wait for every outstanding credit adjustment to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

import asyncio
from unittest.mock import AsyncMock

from arena.messaging.types import ArenaMessageType
from arena.session.economy import NullCreditGateway, RepositoryCreditGateway
from arena.session.manager import ArenaManager
from arena.tests.helpers.arena import start_match
from arena.tests.mocks import MockCreditGateway


class TestRepositoryCreditGateway:
    async def test_success(self):
        repository = AsyncMock()
        repository.adjust_credits.return_value = 150

        assert await RepositoryCreditGateway(repository).adjust_credits("Nova", 50) is True
        repository.adjust_credits.assert_awaited_once_with("Nova", 50)

    async def test_missing_account_returns_false(self):
        repository = AsyncMock()
        repository.adjust_credits.return_value = None

        assert await RepositoryCreditGateway(repository).adjust_credits("ghost", 50) is False

    async def test_repository_error_is_contained(self):
        repository = AsyncMock()
        repository.adjust_credits.side_effect = RuntimeError("db down")

        assert await RepositoryCreditGateway(repository).adjust_credits("Nova", 50) is False


class TestNullCreditGateway:
    async def test_reports_not_applied(self):
        assert await NullCreditGateway().adjust_credits("Nova", 50) is False


class TestEconomyDispatch:
    async def test_result_sent_before_economy_completes(self):
        gateway = MockCreditGateway()
        gateway.release.clear()
        manager = ArenaManager(gateway)
        match_id, nova, zed = await start_match(manager)

        await manager.submit_move(nova, match_id, "EMP")
        await manager.submit_move(zed, match_id, "SHIELD")

        assert len(nova.messages_of_type(ArenaMessageType.GAME_RESULT)) == 1
        assert gateway.calls == []
        assert manager.pending_background_tasks == 2

        gateway.release.set()
        await manager.drain_background_tasks()

        assert sorted(gateway.calls) == [("Nova", 50), ("Zed", -20)]
        assert manager.pending_background_tasks == 0

    async def test_one_failing_adjustment_does_not_block_the_other(self):
        gateway = MockCreditGateway(raising={"Zed"})
        manager = ArenaManager(gateway)
        match_id, nova, zed = await start_match(manager)

        await manager.submit_move(nova, match_id, "LASER")
        await manager.submit_move(zed, match_id, "EMP")
        await manager.drain_background_tasks()

        assert sorted(gateway.calls) == [("Nova", 50), ("Zed", -20)]

    async def test_failed_adjustment_does_not_affect_match_flow(self):
        gateway = MockCreditGateway(failing={"Nova", "Zed"})
        manager = ArenaManager(gateway)
        match_id, nova, zed = await start_match(manager)

        await manager.submit_move(nova, match_id, "LASER")
        await manager.submit_move(zed, match_id, "EMP")
        await manager.drain_background_tasks()

        assert manager.match_count == 0
        assert len(zed.messages_of_type(ArenaMessageType.GAME_RESULT)) == 1

    async def test_back_to_back_matches_each_settle(self):
        rounds = 3
        gateway = MockCreditGateway()
        manager = ArenaManager(gateway)

        for _ in range(rounds):
            match_id, nova, zed = await start_match(manager)
            await manager.submit_move(nova, match_id, "LASER")
            await manager.submit_move(zed, match_id, "EMP")
            manager.unregister_connection(nova)
            manager.unregister_connection(zed)

        await manager.drain_background_tasks()

        assert gateway.calls.count(("Nova", 50)) == rounds
        assert gateway.calls.count(("Zed", -20)) == rounds

    async def test_drain_with_nothing_pending(self, manager):
        await asyncio.wait_for(manager.drain_background_tasks(), timeout=1)

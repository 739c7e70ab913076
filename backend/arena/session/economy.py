"""
Credit gateway used for arena rewards and penalties.

Every adjustment is best effort: failures are logged here and reported as
False, never raised back into the match flow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from shared.dal.credit_repository import CreditRepository

logger = structlog.get_logger()


class CreditGateway(ABC):
    @abstractmethod
    async def adjust_credits(self, username: str, delta: int) -> bool:
        """Apply a signed credit delta to the account behind username. Return True on success."""
        ...


class RepositoryCreditGateway(CreditGateway):
    """Resolve the username through a CreditRepository and persist the delta there."""

    def __init__(self, repository: CreditRepository) -> None:
        self._repository = repository

    async def adjust_credits(self, username: str, delta: int) -> bool:
        try:
            balance = await self._repository.adjust_credits(username, delta)
        except Exception:
            logger.exception("credit adjustment failed", username=username, delta=delta)
            return False
        if balance is None:
            logger.warning("no credit account for username", username=username, delta=delta)
            return False
        logger.info("credits updated", username=username, delta=delta, balance=balance)
        return True


class NullCreditGateway(CreditGateway):
    """Gateway for deployments without an economy store."""

    async def adjust_credits(self, username: str, delta: int) -> bool:
        logger.info("credit adjustment skipped, no economy store configured", username=username, delta=delta)
        return False

"""Abstract interface for credit balance persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import CreditAccount


class CreditRepository(ABC):
    """Abstract interface for credit balance persistence.

    Usernames resolve to an account either by the account username or by the
    local part of its email (case-insensitive).
    """

    @abstractmethod
    async def create_account(self, account: CreditAccount) -> None: ...

    @abstractmethod
    async def get_credits(self, username: str) -> int | None: ...

    @abstractmethod
    async def adjust_credits(self, username: str, delta: int) -> int | None:
        """Apply delta, flooring the balance at 0. Return the new balance, or None if no account matches."""
        ...

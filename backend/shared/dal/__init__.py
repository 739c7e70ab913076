"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.chat_repository import ChatRepository
from shared.dal.credit_repository import CreditRepository
from shared.dal.models import ChatRecord, CreditAccount

__all__ = [
    "ChatRecord",
    "ChatRepository",
    "CreditAccount",
    "CreditRepository",
]

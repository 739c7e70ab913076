"""Persistence models for the data access layer."""

from datetime import datetime

from pydantic import BaseModel, Field


class CreditAccount(BaseModel, frozen=True):
    """Economy account whose credit balance arena results adjust."""

    username: str = Field(min_length=1, max_length=50)
    email: str = ""  # local part doubles as a username alias
    credits: int = Field(default=0, ge=0)


class ChatRecord(BaseModel, frozen=True):
    """One global chat line as stored in the message history."""

    username: str
    message: str
    sent_at: datetime

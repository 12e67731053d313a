"""Domain models for the chat application."""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SENDER = "Anonym"
MAX_SENDER_LENGTH = 80


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Classification of a conversational record."""

    USER = "user"
    BOT = "bot"


class Message(BaseModel):
    """A persisted message, stored as ``{id, date, text, sender}``."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    date: datetime = Field(default_factory=utcnow)
    text: str
    sender: str

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Dates written without an offset are read as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class MessagePatch(BaseModel):
    """Fields to merge into an existing message. ``None`` means unchanged."""

    text: Optional[str] = None
    sender: Optional[str] = None


class HistoryEntry(BaseModel):
    """Conversational view of a message, as kept by the history cache."""

    id: str
    role: Role
    name: str
    text: str
    timestamp: datetime


class Turn(BaseModel):
    """One user message paired with its bot reply."""

    model_config = ConfigDict(populate_by_name=True)

    user_message: HistoryEntry = Field(alias="userMessage")
    bot_message: HistoryEntry = Field(alias="botMessage")


class Rule(BaseModel):
    """Static keyword-to-answer-template mapping."""

    model_config = ConfigDict(frozen=True)

    keywords: FrozenSet[str]
    answers: Tuple[str, ...]


class UnansweredQuestion(BaseModel):
    """One line of the unanswered-question log."""

    ts: datetime = Field(default_factory=utcnow)
    name: str = ""
    question: str = ""

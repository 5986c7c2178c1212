"""A single utterance inside an exchange."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import Field, field_validator

from .agent import Agent
from .base import CamelModel


class Message(CamelModel):
    """One message sent by an agent.

    ``sent_at`` is kept as the ISO 8601 string found in the stored record.
    It is only parsed when a transcript is exported, so a record carrying
    a malformed timestamp can still be loaded and displayed.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sender: Agent
    content: str
    sent_at: str | None = None

    @field_validator("sent_at", mode="before")
    @classmethod
    def _serialise_datetime(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    @classmethod
    def create(cls, sender: Agent, content: str, sent_at: datetime | None = None) -> "Message":
        """Build a new message stamped with the current UTC time."""
        return cls(
            sender=sender,
            content=content,
            sent_at=(sent_at or datetime.now(timezone.utc)).isoformat(),
        )

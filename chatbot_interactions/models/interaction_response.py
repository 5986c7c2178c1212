"""Response models for the participant API."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .enums import InteractionStatus
from .interaction import Interaction
from .message import Message


class InteractionResponse(BaseModel):
    """The caller's interaction together with derived view data."""

    interaction: Interaction
    status: InteractionStatus
    record_id: str | None = Field(
        default=None,
        description="Identifier of the stored record, once the store has assigned one.",
    )
    past_messages: List[Message] = Field(default_factory=list)


class LeaveResponse(BaseModel):
    """Outcome of the before-leave check."""

    warn: bool
    message: str = ""

"""Pydantic models for the admin conversations table."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel

from .enums import InteractionStatus
from .message import Message


class ConversationRow(BaseModel):
    """One participant's row in the conversations table."""

    index: int
    record_id: str
    member_id: str
    member_name: str
    description: str
    updated_at: str
    status: InteractionStatus
    expanded: bool = False
    transcript: List[Message] | None = None


class ConversationsView(BaseModel):
    """Top-level container rendered by the admin conversations view."""

    rows: List[ConversationRow]
    expanded: int | None = None
    export_enabled: bool
    error: str | None = None

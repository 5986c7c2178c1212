"""Scripted conversational segments."""

from __future__ import annotations

import uuid
from typing import List

from pydantic import Field

from .agent import Agent
from .base import CamelModel
from .enums import AgentType
from .message import Message


class Exchange(CamelModel):
    """One scripted segment of an interaction.

    An exchange is copied from the exercise template when the interaction
    is built.  Its ``messages`` only ever grow, and ``dismissed`` flips once
    from ``False`` to ``True`` when the participant moves past it.  The
    helpers below never mutate ``self``; they return updated copies that are
    fed back through :func:`~chatbot_interactions.services.state_machine.replace_exchange`.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    description: str = ""
    assistant: Agent
    instructions: str = Field(default="", description="Instructions given to the assistant for this exchange.")
    participant_cue: str = Field(default="", description="Prompt shown to the participant.")
    nb_interactions: int = Field(default=1, ge=0, description="Participant turns allowed before a hard limit applies.")
    hard_limit: bool = False
    messages: List[Message] = Field(default_factory=list)
    dismissed: bool = False

    def with_message(self, message: Message) -> "Exchange":
        """Return a copy with ``message`` appended."""
        return self.model_copy(update={"messages": [*self.messages, message]})

    def dismiss(self) -> "Exchange":
        """Return a dismissed copy; dismissing twice is a no-op."""
        if self.dismissed:
            return self
        return self.model_copy(update={"dismissed": True})

    @property
    def participant_turns(self) -> int:
        return sum(1 for message in self.messages if message.sender.type == AgentType.PARTICIPANT)

    @property
    def limit_reached(self) -> bool:
        """Whether a hard-limited exchange should be dismissed automatically."""
        return self.hard_limit and self.participant_turns >= self.nb_interactions


class ExchangesSettings(CamelModel):
    """Ordered container of exchanges, stored as ``{"exchangeList": [...]}``."""

    exchange_list: List[Exchange] = Field(default_factory=list)

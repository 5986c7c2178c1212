"""The interaction aggregate and its stored payload."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from .agent import Agent
from .base import CamelModel
from .enums import AgentType
from .exchange import Exchange, ExchangesSettings


class Interaction(CamelModel):
    """One participant's run through the scripted exercise.

    The lifecycle fields (``started``, ``current_exchange``, ``completed``
    and the timestamps) are only changed by the transitions in
    :mod:`chatbot_interactions.services.state_machine`.
    """

    name: str = ""
    description: str = ""
    participant: Agent = Field(
        default_factory=lambda: Agent(id="", name="", type=AgentType.PARTICIPANT)
    )
    exchanges: ExchangesSettings = Field(default_factory=ExchangesSettings)
    current_exchange: int = Field(default=0, ge=0)
    started: bool = False
    started_at: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    participant_instructions: str = ""
    participant_end_text: str = ""
    send_all_to_chatbot: bool = False

    @property
    def exchange_count(self) -> int:
        return len(self.exchanges.exchange_list)

    @property
    def active_exchange(self) -> Exchange | None:
        """The exchange at ``current_exchange``, if any."""
        exchanges = self.exchanges.exchange_list
        if 0 <= self.current_exchange < len(exchanges):
            return exchanges[self.current_exchange]
        return None


class UserInteraction(CamelModel):
    """Payload stored in a record's ``data`` field."""

    interaction: Interaction

"""Actors taking part in an exchange."""

from pydantic import ConfigDict, Field

from .base import CamelModel
from .enums import AgentType


class Agent(CamelModel):
    """A participant or an assistant.

    Agents are frozen: an exchange keeps the same assistant for its whole
    life and messages carry a snapshot of their sender.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: AgentType
    description: str = Field(default="", description="Persona text used when prompting an assistant.")

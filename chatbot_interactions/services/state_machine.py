"""Lifecycle transitions of an interaction.

Every function here is pure: it takes an :class:`Interaction` and returns
a new one, leaving its argument untouched.  The participant session
applies them one at a time and hands each result to the sync engine.

States::

    NOT_STARTED --start--> STARTED --advance (last exchange)--> COMPLETED
                            |   ^
                            +---+ advance (other exchanges)

``COMPLETED`` is terminal; only deleting the record brings a participant
back to a fresh ``NOT_STARTED`` interaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List

from loguru import logger

from ..config.exercise_config import DEFAULT_USER, ExerciseSettings
from ..models.agent import Agent
from ..models.enums import AgentType, InteractionStatus
from ..models.exchange import Exchange, ExchangesSettings
from ..models.interaction import Interaction
from ..models.message import Message
from ..models.record import LocalContext
from ..utils.helpers import as_utc, utcnow

Transition = Callable[[Interaction], Interaction]

LEAVE_CONFIRMATION_MESSAGE = "Are you sure you want to leave?"


def _stamp(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Return a timestamp that never goes backwards from ``previous``."""
    now = as_utc(now or utcnow())
    if previous is not None and as_utc(previous) > now:
        return as_utc(previous)
    return now


def resolve_participant(context: LocalContext) -> Agent:
    """Build the participant agent for the active actor.

    The default user is overridden with the known member's id and name;
    when the member list does not contain the actor, the identity supplied
    by the context is used instead.
    """
    member = context.find_member()
    member_id = member.id if member else context.member_id
    member_name = (member.name if member else "") or context.member_name
    return DEFAULT_USER.model_copy(
        update={
            "id": member_id or DEFAULT_USER.id,
            "name": member_name or DEFAULT_USER.name,
        }
    )


def build_interaction_from_template(exercise: ExerciseSettings, participant: Agent) -> Interaction:
    """Create a fresh, not started interaction from the exercise template."""
    exchanges = [
        exchange.model_copy(
            deep=True,
            update={
                "assistant": exchange.assistant.model_copy(update={"type": AgentType.ASSISTANT}),
                "messages": [],
                "dismissed": False,
            },
        )
        for exchange in exercise.exchanges.exchange_list
    ]
    return Interaction(
        name=exercise.chat.name,
        description=exercise.chat.description,
        participant_instructions=exercise.chat.participant_instructions,
        participant_end_text=exercise.chat.participant_end_text,
        send_all_to_chatbot=exercise.chat.send_all_to_chatbot,
        participant=participant,
        exchanges=ExchangesSettings(exchange_list=exchanges),
        current_exchange=0,
    )


def start_interaction(interaction: Interaction, now: datetime | None = None) -> Interaction:
    """NOT_STARTED -> STARTED.  Any other state is returned unchanged."""
    if interaction.started:
        logger.debug("Start ignored: interaction already started")
        return interaction
    moment = _stamp(interaction.updated_at, now)
    return interaction.model_copy(
        update={"started": True, "started_at": moment, "updated_at": moment}
    )


def advance_exchange(interaction: Interaction, now: datetime | None = None) -> Interaction:
    """Move to the next exchange, or complete the interaction on the last one."""
    count = interaction.exchange_count
    if count == 0 or not interaction.started or interaction.completed:
        logger.debug(
            "Advance ignored (exchanges={}, started={}, completed={})",
            count,
            interaction.started,
            interaction.completed,
        )
        return interaction
    moment = _stamp(interaction.updated_at, now)
    if interaction.current_exchange >= count - 1:
        return interaction.model_copy(
            update={"completed": True, "completed_at": moment, "updated_at": moment}
        )
    return interaction.model_copy(
        update={"current_exchange": interaction.current_exchange + 1, "updated_at": moment}
    )


def replace_exchange(interaction: Interaction, exchange: Exchange, now: datetime | None = None) -> Interaction:
    """Swap in ``exchange`` by id, keeping the order of the list."""
    exchange_list = [
        exchange if existing.id == exchange.id else existing
        for existing in interaction.exchanges.exchange_list
    ]
    return interaction.model_copy(
        update={
            "exchanges": ExchangesSettings(exchange_list=exchange_list),
            "updated_at": _stamp(interaction.updated_at, now),
        }
    )


def derive_status(interaction: Interaction) -> InteractionStatus:
    if interaction.completed:
        return InteractionStatus.COMPLETE
    if interaction.started:
        return InteractionStatus.INCOMPLETE
    return InteractionStatus.NOT_STARTED


def past_messages(interaction: Interaction) -> List[Message]:
    """Messages of dismissed exchanges, i.e. the visible history."""
    return [
        message
        for exchange in interaction.exchanges.exchange_list
        if exchange.dismissed
        for message in exchange.messages
    ]


def should_warn_before_leave(interaction: Interaction | None) -> bool:
    """Leaving needs confirmation unless the interaction is known to be complete."""
    return interaction is None or not interaction.completed

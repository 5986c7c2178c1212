"""Per-participant session owning the in-memory interaction.

A :class:`ParticipantSession` is the explicit context object for one
participant: it is created when the participant first shows up, passed to
whatever needs the interaction, and dropped when the session ends.  It
applies the pure transitions of :mod:`.state_machine` and forwards every
resulting interaction to its :class:`~.sync_engine.InteractionSyncEngine`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Optional, Protocol

from loguru import logger

from ..config.exercise_config import ExerciseSettings
from ..models.exchange import Exchange
from ..models.interaction import Interaction
from ..models.message import Message
from ..models.record import LocalContext
from ..store.base import RecordStore
from ..utils.error_handler import InteractionStateError, UnknownExchangeError
from .state_machine import (
    LEAVE_CONFIRMATION_MESSAGE,
    Transition,
    advance_exchange,
    build_interaction_from_template,
    replace_exchange,
    resolve_participant,
    should_warn_before_leave,
    start_interaction,
)
from .sync_engine import InteractionSyncEngine


class ReplyGenerator(Protocol):
    async def reply(self, interaction: Interaction, exchange: Exchange) -> str: ...


@dataclass
class BeforeLeaveEvent:
    """Cancellable notification that the participant is about to leave."""

    default_prevented: bool = False
    return_value: str = ""

    def prevent_default(self) -> None:
        self.default_prevented = True


class ParticipantSession:
    """Owns one participant's interaction for the lifetime of a session."""

    def __init__(
        self,
        context: LocalContext,
        store: RecordStore,
        exercise: ExerciseSettings,
        assistant: Optional[ReplyGenerator] = None,
    ) -> None:
        self.context = context
        self.store = store
        self.exercise = exercise
        self.assistant = assistant
        self.sync = InteractionSyncEngine(store, context)
        self.participant = resolve_participant(context)
        self._interaction: Optional[Interaction] = None
        self._init_task: Optional[asyncio.Task] = None
        self._deferred: list[Transition] = []

    def rebind(self, context: LocalContext, store: RecordStore) -> None:
        """Act with a new identity context, keeping the interaction and sync state."""
        self.context = context
        self.store = store
        self.sync.rebind(store, context)

    @property
    def initialized(self) -> bool:
        return self._interaction is not None

    @property
    def interaction(self) -> Optional[Interaction]:
        return self._interaction

    @property
    def can_sync(self) -> bool:
        """Anonymous viewers (no member id) never write to the store."""
        return bool(self.context.member_id)

    # ------------------------------------------------------------------
    # Initialisation

    async def initialize(self) -> Interaction:
        """Rehydrate the stored interaction or build a new one, exactly once.

        Concurrent callers share the same initialisation task.  If the
        record list cannot be fetched the error propagates and the next call
        tries again.
        """
        if self._interaction is not None:
            return self._interaction
        if self._init_task is None:
            self._init_task = asyncio.get_running_loop().create_task(self._initialize())
        return await self._init_task

    async def _initialize(self) -> Interaction:
        try:
            await self.sync.load()
        except Exception:
            self._init_task = None
            raise

        stored = self.sync.user_interaction
        if stored is not None:
            logger.info("Rehydrated interaction for member {} from record {}", self.context.member_id, self.sync.record_id)
            self._interaction = stored.interaction
        else:
            logger.info("Building a new interaction for member {}", self.context.member_id)
            self._interaction = build_interaction_from_template(self.exercise, self.participant)
            self._submit()

        deferred, self._deferred = self._deferred, []
        for transition in deferred:
            self.apply(transition)
        return self._interaction

    # ------------------------------------------------------------------
    # Transitions

    def apply(self, transition: Transition) -> Optional[Interaction]:
        """Apply ``transition`` and synchronise the result.

        Before initialisation the transition is queued and replayed, in
        order, as soon as the interaction exists.
        """
        if self._interaction is None:
            logger.debug("Interaction not initialised; deferring {}", getattr(transition, "__name__", transition))
            self._deferred.append(transition)
            return None
        updated = transition(self._interaction)
        if updated is self._interaction:
            return updated
        self._interaction = updated
        self._submit()
        return updated

    def _submit(self) -> Optional[asyncio.Task]:
        if not self.can_sync or self._interaction is None:
            return None
        return self.sync.submit(self._interaction)

    async def start(self) -> Interaction:
        await self.initialize()
        return self.apply(start_interaction)

    async def next_exchange(self) -> Interaction:
        await self.initialize()
        return self.apply(advance_exchange)

    async def update_exchange(self, exchange: Exchange) -> Interaction:
        interaction = await self.initialize()
        if not any(existing.id == exchange.id for existing in interaction.exchanges.exchange_list):
            raise UnknownExchangeError(f"Exchange {exchange.id} is not part of this interaction")
        return self.apply(partial(replace_exchange, exchange=exchange))

    def _current_exchange(self) -> Exchange:
        interaction = self._interaction
        if interaction is None or not interaction.started or interaction.completed:
            raise InteractionStateError("The interaction is not in progress")
        exchange = interaction.active_exchange
        if exchange is None:
            raise InteractionStateError("The interaction has no exchanges")
        return exchange

    async def send_message(self, content: str) -> Interaction:
        """Add a participant turn and, when configured, the assistant's answer.

        A hard-limited exchange is dismissed automatically once the
        participant has used all of its turns.
        """
        await self.initialize()
        exchange = self._current_exchange()
        exchange = exchange.with_message(Message.create(self._interaction.participant, content))
        self.apply(partial(replace_exchange, exchange=exchange))

        if self.assistant is not None:
            text = await self.assistant.reply(self._interaction, exchange)
            current = self._current_exchange()
            if current.id == exchange.id:
                exchange = current.with_message(Message.create(current.assistant, text))
                self.apply(partial(replace_exchange, exchange=exchange))

        if exchange.limit_reached and not exchange.dismissed:
            logger.info("Exchange {} reached its limit of {} turns", exchange.id, exchange.nb_interactions)
            return await self.dismiss_exchange()
        return self._interaction

    async def dismiss_exchange(self) -> Interaction:
        """Move past the current exchange: dismiss it, then advance."""
        await self.initialize()
        exchange = self._current_exchange()
        self.apply(partial(replace_exchange, exchange=exchange.dismiss()))
        return self.apply(advance_exchange)

    def before_leave(self, event: BeforeLeaveEvent) -> BeforeLeaveEvent:
        """Ask for confirmation when leaving an unfinished interaction."""
        if should_warn_before_leave(self._interaction):
            event.prevent_default()
            event.return_value = LEAVE_CONFIRMATION_MESSAGE
        return event

    async def reset(self, record_id: Optional[str] = None) -> None:
        """Delete the stored record and discard the in-memory interaction."""
        await self.sync.remove(record_id)
        self._interaction = None
        self._init_task = None
        self._deferred = []

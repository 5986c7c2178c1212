"""Shared pytest fixtures.

Provides:
- ``exercise``: a two-exchange exercise template
- ``participant_context`` / ``admin_context`` / ``other_context``: caller identities
- ``backend``: fresh in-memory record backend per test
- ``make_store``: factory for call-recording stores on that backend
- ``make_record``: seeds a stored record with a chosen creation time
- ``fake_assistant``: deterministic reply generator
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from chatbot_interactions.config.exercise_config import ChatSettings, ExerciseSettings
from chatbot_interactions.models import (
    Agent,
    AgentType,
    Exchange,
    ExchangesSettings,
    Interaction,
    LocalContext,
    Member,
    NewRecord,
    PermissionLevel,
    PersistedRecord,
    RecordType,
    UserInteraction,
)
from chatbot_interactions.store.base import RecordStore
from chatbot_interactions.store.in_memory import InMemoryRecordBackend

ASSISTANT = Agent(id="bot-1", name="Bob", type=AgentType.ASSISTANT, description="A friendly baker.")


class RecordingStore(RecordStore):
    """In-memory store view that records every call.

    ``fail_with`` makes every following call raise; ``list_gate`` holds the
    list request until the event is set.
    """

    def __init__(self, backend: InMemoryRecordBackend, context: LocalContext) -> None:
        self.inner = backend.for_actor(context)
        self.calls: list[tuple[str, Optional[str]]] = []
        self.fail_with: Optional[Exception] = None
        self.list_gate: Optional[asyncio.Event] = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def list_records(self, record_type: RecordType) -> list[PersistedRecord]:
        self.calls.append(("list", None))
        if self.list_gate is not None:
            await self.list_gate.wait()
        self._check()
        return await self.inner.list_records(record_type)

    async def create(self, record: NewRecord) -> PersistedRecord:
        self.calls.append(("create", None))
        self._check()
        return await self.inner.create(record)

    async def update(self, record_id: str, patch: dict[str, Any]) -> PersistedRecord:
        self.calls.append(("update", record_id))
        self._check()
        return await self.inner.update(record_id, patch)

    async def delete(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        self._check()
        await self.inner.delete(record_id)

    async def get_members(self) -> list[Member]:
        return await self.inner.get_members()


class FakeAssistant:
    def __init__(self, text: str = "Hello from the bakery!") -> None:
        self.text = text
        self.calls: list[str] = []

    async def reply(self, interaction: Interaction, exchange: Exchange) -> str:
        self.calls.append(exchange.id)
        return self.text


@pytest.fixture
def exercise() -> ExerciseSettings:
    return ExerciseSettings(
        chat=ChatSettings(
            name="Bakery role play",
            description="bakery",
            participant_instructions="Talk to the baker.",
            participant_end_text="Thanks!",
        ),
        exchanges=ExchangesSettings(
            exchange_list=[
                Exchange(id="ex-1", name="Greeting", assistant=ASSISTANT, nb_interactions=1, hard_limit=True),
                Exchange(id="ex-2", name="Order", assistant=ASSISTANT, nb_interactions=2),
            ]
        ),
    )


@pytest.fixture
def participant_context() -> LocalContext:
    return LocalContext(
        member_id="m-1",
        member_name="Alice",
        permission=PermissionLevel.WRITE,
        members=[Member(id="m-1", name="Alice Liddell")],
    )


@pytest.fixture
def other_context() -> LocalContext:
    return LocalContext(member_id="m-2", member_name="Carol", permission=PermissionLevel.WRITE)


@pytest.fixture
def admin_context() -> LocalContext:
    return LocalContext(member_id="a-1", member_name="Admin", permission=PermissionLevel.ADMIN)


@pytest.fixture
def backend() -> InMemoryRecordBackend:
    """Fresh record backend, isolated per test."""
    return InMemoryRecordBackend()


@pytest.fixture
def make_store(backend):
    def factory(context: LocalContext) -> RecordingStore:
        return RecordingStore(backend, context)

    return factory


@pytest.fixture
def make_record(backend):
    """Seed a stored record directly in the backend."""

    def factory(
        member_id: str,
        created_at: datetime,
        interaction: Interaction | None = None,
        record_id: str | None = None,
        member_name: str = "",
    ) -> PersistedRecord:
        owner = Member(id=member_id, name=member_name or member_id)
        record = PersistedRecord(
            id=record_id or f"rec-{member_id}-{created_at.timestamp():.0f}",
            member=owner,
            creator=owner,
            created_at=created_at,
            data=UserInteraction(interaction=interaction or Interaction(description=f"seed-{member_id}")),
        )
        backend.records[record.id] = record.to_payload()
        return record

    return factory


@pytest.fixture
def fake_assistant() -> FakeAssistant:
    return FakeAssistant()


def at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def t():
    """Shortcut building aware UTC datetimes."""
    return at

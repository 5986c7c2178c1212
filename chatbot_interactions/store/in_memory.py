"""Process-local record store used in development and tests."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from ..models.enums import RecordType
from ..models.record import LocalContext, Member, NewRecord, PersistedRecord
from ..utils.error_handler import NoActiveRecordError
from .base import RecordStore


class InMemoryRecordBackend:
    """Records and members shared by every actor of the process.

    Records are kept as camelCase JSON payloads so that reads always hand
    out fresh objects, as a remote store would.
    """

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.members: dict[str, Member] = {}

    def register_member(self, member: Member) -> None:
        if member.id:
            self.members[member.id] = member

    def for_actor(self, context: LocalContext) -> "InMemoryRecordStore":
        """Return a store view scoped to ``context``."""
        return InMemoryRecordStore(self, context)


class InMemoryRecordStore(RecordStore):
    """View of an :class:`InMemoryRecordBackend` for one actor."""

    def __init__(self, backend: InMemoryRecordBackend, context: LocalContext) -> None:
        self._backend = backend
        self._context = context
        if context.member_id:
            backend.register_member(Member(id=context.member_id, name=context.member_name))

    def _visible(self, payload: dict[str, Any]) -> bool:
        if self._context.is_admin:
            return True
        return payload["member"]["id"] == self._context.member_id

    async def list_records(self, record_type: RecordType) -> list[PersistedRecord]:
        return [
            PersistedRecord.model_validate(payload)
            for payload in self._backend.records.values()
            if payload["type"] == record_type.value and self._visible(payload)
        ]

    async def create(self, record: NewRecord) -> PersistedRecord:
        now = datetime.now(timezone.utc)
        owner = Member(id=self._context.member_id, name=self._context.member_name)
        stored = PersistedRecord(
            id=str(uuid.uuid4()),
            type=record.type,
            member=owner,
            creator=owner,
            created_at=now,
            updated_at=now,
            data=record.data,
            visibility=record.visibility,
        )
        self._backend.records[stored.id] = stored.to_payload()
        logger.debug("Created record {} for member {}", stored.id, owner.id)
        return PersistedRecord.model_validate(self._backend.records[stored.id])

    async def update(self, record_id: str, patch: dict[str, Any]) -> PersistedRecord:
        payload = self._backend.records.get(record_id)
        if payload is None or not self._visible(payload):
            raise NoActiveRecordError(f"Record {record_id} not found")
        merged = {**payload, **patch, "updatedAt": datetime.now(timezone.utc).isoformat()}
        updated = PersistedRecord.model_validate(merged)
        self._backend.records[record_id] = updated.to_payload()
        return PersistedRecord.model_validate(self._backend.records[record_id])

    async def delete(self, record_id: str) -> None:
        payload = self._backend.records.get(record_id)
        if payload is None:
            return
        if not self._visible(payload):
            raise NoActiveRecordError(f"Record {record_id} not found")
        del self._backend.records[record_id]
        logger.debug("Deleted record {}", record_id)

    async def get_members(self) -> list[Member]:
        return list(self._backend.members.values())

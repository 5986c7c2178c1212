"""Synchronisation of one participant's interaction with the record store.

The engine keeps exactly one stored record per participant using a
"create once, then update" discipline:

* the first submit for a participant without a record issues a single
  create request;
* while that create is in flight, further submits wait for the id it
  returns and then update;
* once the id is known every submit updates that record.

Writes are fire-and-forget: :meth:`InteractionSyncEngine.submit` spawns an
asyncio task and returns immediately, so local transitions never wait on
the network.  There is no queue or debounce; concurrent updates to the same
record are resolved by the store (last write wins).  Callers that need to
surface failures await :meth:`InteractionSyncEngine.flush`.
"""

from __future__ import annotations

import asyncio
from typing import Literal, Optional

from loguru import logger

from ..models.enums import RecordType
from ..models.interaction import Interaction, UserInteraction
from ..models.record import LocalContext, PersistedRecord, get_default_user_interaction_record
from ..store.base import RecordStore
from ..utils.error_handler import StoreUnavailableError
from ..utils.helpers import as_utc

SyncStatus = Literal["loading", "error", "success"]


def select_member_record(records: list[PersistedRecord], member_id: str) -> Optional[PersistedRecord]:
    """Pick the newest record owned by ``member_id``.

    Records are sorted by creation time and reversed before the first match
    is taken, so duplicate legacy records resolve to the most recent one.
    """
    newest_first = sorted(records, key=lambda record: as_utc(record.created_at))[::-1]
    return next((record for record in newest_first if record.member.id == member_id), None)


class InteractionSyncEngine:
    """Mirror of the active participant's record in the remote store."""

    def __init__(self, store: RecordStore, context: LocalContext) -> None:
        self._store = store
        self._context = context
        self.status: SyncStatus = "loading"
        # None until the record list has been fetched
        self._records: Optional[list[PersistedRecord]] = None
        self._record: Optional[PersistedRecord] = None
        self._creating: Optional[asyncio.Task] = None
        self._deferred: Optional[UserInteraction] = None
        self._inflight: set[asyncio.Task] = set()
        self._generation = 0
        self.last_error: Optional[BaseException] = None

    def rebind(self, store: RecordStore, context: LocalContext) -> None:
        """Switch store and context; the tracked record and pending writes are kept."""
        self._store = store
        self._context = context

    # ------------------------------------------------------------------
    # Read side

    @property
    def loaded(self) -> bool:
        return self._records is not None

    @property
    def record_id(self) -> Optional[str]:
        return self._record.id if self._record else None

    @property
    def user_interaction(self) -> Optional[UserInteraction]:
        """The active participant's stored payload, if a record exists."""
        return self._record.data if self._record else None

    @property
    def all_records(self) -> Optional[list[PersistedRecord]]:
        """Every visible record, exposed to administrators only."""
        if not self._context.is_admin or self._records is None:
            return None
        return list(self._records)

    async def load(self) -> None:
        """Fetch the record list and select the participant's record.

        May be called again to refresh the list.  A submit made before the
        first successful load is replayed once the list has resolved.
        """
        try:
            records = await self._store.list_records(RecordType.USER_INTERACTION)
        except StoreUnavailableError as exc:
            self.status = "error"
            self.last_error = exc
            logger.warning("Failed to load interaction records: {}", exc)
            raise

        self._records = [record for record in records if record.type == RecordType.USER_INTERACTION]
        selected = select_member_record(self._records, self._context.member_id)
        if selected is not None:
            self._record = selected
        self.status = "success"
        logger.debug(
            "Loaded {} interaction records (own record: {})",
            len(self._records),
            self.record_id,
        )

        if self._deferred is not None:
            payload, self._deferred = self._deferred, None
            self._dispatch(payload)

    # ------------------------------------------------------------------
    # Write side

    def submit(self, interaction: Interaction) -> Optional[asyncio.Task]:
        """Push ``interaction`` to the store without waiting for the result.

        Returns the spawned write task, or ``None`` when the submit was
        deferred because the record list has not been fetched yet.
        """
        payload = UserInteraction(interaction=interaction.model_copy(deep=True))
        if not self.loaded:
            logger.debug("Record list pending; deferring submit")
            self._deferred = payload
            return None
        return self._dispatch(payload)

    def _dispatch(self, payload: UserInteraction) -> asyncio.Task:
        if self._record is not None:
            return self._spawn(self._update(self._record.id, payload, self._generation))
        if self._creating is not None:
            return self._spawn(self._update_after_create(self._creating, payload, self._generation))
        self._creating = self._spawn(self._create(payload, self._generation))
        return self._creating

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.last_error = exc
            logger.error("Interaction write failed: {}", exc)

    async def _create(self, payload: UserInteraction, generation: int) -> PersistedRecord:
        try:
            record = await self._store.create(get_default_user_interaction_record(payload))
        except Exception:
            if generation == self._generation:
                self._creating = None
            raise
        if generation != self._generation:
            # removed while the create was in flight
            logger.info("Deleting record {} created after its removal", record.id)
            await self._store.delete(record.id)
            return record
        self._record = record
        self._creating = None
        if self._records is not None:
            self._records.append(record)
        logger.info("Created interaction record {} for member {}", record.id, self._context.member_id)
        return record

    async def _update_after_create(
        self, creating: asyncio.Task, payload: UserInteraction, generation: int
    ) -> PersistedRecord:
        record = await creating
        if generation != self._generation:
            return record
        return await self._update(record.id, payload, generation)

    async def _update(self, record_id: str, payload: UserInteraction, generation: int) -> PersistedRecord:
        record = await self._store.update(record_id, {"data": payload.to_payload()})
        if generation == self._generation and self._record is not None and self._record.id == record_id:
            self._record = record
            if self._records is not None:
                self._records = [record if existing.id == record_id else existing for existing in self._records]
        return record

    async def flush(self) -> None:
        """Wait for every in-flight write; re-raise the first store failure."""
        while self._inflight:
            results = await asyncio.gather(*list(self._inflight), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                    raise result

    async def remove(self, record_id: Optional[str] = None) -> None:
        """Delete a record and forget the tracked one.

        Without ``record_id`` the participant's own record is deleted; when
        no record is known this is a local reset only.  In every case the
        next submit starts over with a create, and a create still in flight
        deletes its record as soon as the store returns it.
        """
        target = record_id or self.record_id
        self._record = None
        self._creating = None
        self._deferred = None
        self._generation += 1

        if target is None:
            logger.info("No active record to delete; local state reset only")
            return
        if self._records is not None:
            self._records = [record for record in self._records if record.id != target]
        await self._store.delete(target)
        logger.info("Deleted interaction record {}", target)

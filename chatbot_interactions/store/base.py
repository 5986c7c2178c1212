"""Abstract contract of the remote record store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models.enums import RecordType
from ..models.record import Member, NewRecord, PersistedRecord


class RecordStore(ABC):
    """Typed record service seen through the active actor's visibility.

    Implementations return only the records the actor may see: their own
    records, or every participant's records for administrators.  All
    transport and authentication failures are raised as
    :class:`~chatbot_interactions.utils.error_handler.StoreUnavailableError`.
    """

    @abstractmethod
    async def list_records(self, record_type: RecordType) -> list[PersistedRecord]:
        """Return the visible records of ``record_type``."""

    @abstractmethod
    async def create(self, record: NewRecord) -> PersistedRecord:
        """Persist a new record owned by the actor and return it with its id."""

    @abstractmethod
    async def update(self, record_id: str, patch: dict[str, Any]) -> PersistedRecord:
        """Apply ``patch`` (camelCase JSON) to an existing record."""

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Delete a record.  Deleting an unknown id is not an error."""

    @abstractmethod
    async def get_members(self) -> list[Member]:
        """Return the members known to the hosting platform."""

    async def close(self) -> None:
        """Release transport resources."""
        return None

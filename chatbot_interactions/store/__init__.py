"""Record store implementations."""

from .base import RecordStore  # noqa: F401
from .http_store import HttpRecordStore  # noqa: F401
from .in_memory import InMemoryRecordBackend, InMemoryRecordStore  # noqa: F401

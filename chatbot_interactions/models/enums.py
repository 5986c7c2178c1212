"""Enumerations used across models."""

from enum import Enum


class AgentType(str, Enum):
    """Role of an actor inside an exchange.

    ``PARTICIPANT`` is the human working through the exercise and
    ``ASSISTANT`` is the simulated counterpart of an exchange.
    """

    PARTICIPANT = "participant"
    ASSISTANT = "assistant"


class InteractionStatus(str, Enum):
    """Derived progress of an interaction, shown in the conversations table."""

    NOT_STARTED = "NOT_STARTED"
    INCOMPLETE = "INCOMPLETE"
    COMPLETE = "COMPLETE"


class PermissionLevel(str, Enum):
    """Permission of the active actor on the exercise, ordered read < write < admin."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _PERMISSION_ORDER.index(self)

    def gte(self, other: "PermissionLevel") -> bool:
        return self.rank >= other.rank


_PERMISSION_ORDER = [PermissionLevel.READ, PermissionLevel.WRITE, PermissionLevel.ADMIN]


class RecordType(str, Enum):
    """Type tag of records kept in the remote store."""

    USER_INTERACTION = "user-interaction"


class RecordVisibility(str, Enum):
    """Visibility scope of a stored record."""

    MEMBER = "member"
    ITEM = "item"

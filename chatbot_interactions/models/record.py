"""Representation of interactions inside the remote record store."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel
from .enums import PermissionLevel, RecordType, RecordVisibility
from .interaction import UserInteraction


class Member(CamelModel):
    """A member known to the record store."""

    id: str
    name: str = ""


class NewRecord(CamelModel):
    """Body of a create request; the store assigns id, owner and timestamps."""

    type: RecordType = RecordType.USER_INTERACTION
    data: UserInteraction
    visibility: RecordVisibility = RecordVisibility.MEMBER


class PersistedRecord(CamelModel):
    """A stored interaction record as returned by the store."""

    id: str
    type: RecordType = RecordType.USER_INTERACTION
    member: Member
    creator: Optional[Member] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    data: UserInteraction
    visibility: RecordVisibility = RecordVisibility.MEMBER

    @property
    def creator_id(self) -> Optional[str]:
        return self.creator.id if self.creator else None


def get_default_user_interaction_record(payload: UserInteraction) -> NewRecord:
    """Wrap an interaction payload in a member-scoped create request."""
    return NewRecord(
        type=RecordType.USER_INTERACTION,
        data=payload,
        visibility=RecordVisibility.MEMBER,
    )


class LocalContext(CamelModel):
    """Identity of the active actor, as supplied by the hosting platform."""

    member_id: str = ""
    member_name: str = ""
    permission: PermissionLevel = PermissionLevel.READ
    members: list[Member] = Field(default_factory=list)
    token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.permission.gte(PermissionLevel.ADMIN)

    def find_member(self) -> Optional[Member]:
        """Return the known member matching ``member_id``."""
        if not self.member_id:
            return None
        return next((member for member in self.members if member.id == self.member_id), None)

"""FastAPI dependencies resolving the caller's identity and session."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from ..models.enums import PermissionLevel
from ..models.record import LocalContext
from ..services.participant_session import ParticipantSession
from ..services.session_manager import SessionManager


def get_local_context(
    x_member_id: str = Header(default=""),
    x_member_name: str = Header(default=""),
    x_permission: PermissionLevel = Header(default=PermissionLevel.READ),
    authorization: Optional[str] = Header(default=None),
) -> LocalContext:
    """Identity of the caller as forwarded by the hosting platform."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip() or None
    return LocalContext(
        member_id=x_member_id,
        member_name=x_member_name,
        permission=x_permission,
        token=token,
    )


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


async def get_participant_session(
    context: LocalContext = Depends(get_local_context),
    manager: SessionManager = Depends(get_session_manager),
) -> ParticipantSession:
    return await manager.session_for(context)

"""Admin endpoints: conversations table, CSV exports and record deletion."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from loguru import logger

from ..models.dashboard import ConversationsView
from ..models.record import PersistedRecord
from ..services.aggregation import build_conversation_rows, deduplicate_records
from ..services.csv_export import (
    FileSystemSink,
    MemorySink,
    bulk_export_filename,
    export_interactions_as_csv,
    single_export_filename,
)
from ..services.participant_session import ParticipantSession
from ..services.session_manager import SessionManager
from ..utils.error_handler import (
    InteractionError,
    NoActiveRecordError,
    PermissionDeniedError,
    StoreUnavailableError,
)
from .dependencies import get_participant_session, get_session_manager

router = APIRouter(prefix="/admin", tags=["Admin"])


def _require_admin(session: ParticipantSession) -> None:
    if not session.context.is_admin:
        raise PermissionDeniedError("Administrator permission required")


async def _load_records(session: ParticipantSession) -> list[PersistedRecord]:
    _require_admin(session)
    await session.sync.load()
    return session.sync.all_records or []


def _csv_response(sink: MemorySink) -> Response:
    return Response(
        content=sink.csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{sink.filename}"'},
    )


async def _conversations_view(session: ParticipantSession, manager: SessionManager) -> ConversationsView:
    expanded = manager.expansion_for(session.context).expanded
    try:
        records: Optional[list[PersistedRecord]] = await _load_records(session)
    except StoreUnavailableError as exc:
        return build_conversation_rows(None, expanded, manager.export_timezone, error=str(exc))
    return build_conversation_rows(records, expanded, manager.export_timezone)


@router.get("/conversations", response_model=ConversationsView)
async def conversations_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
    manager: SessionManager = Depends(get_session_manager),
) -> ConversationsView:
    """One row per participant; a store failure renders an empty table."""
    return await _conversations_view(session, manager)


@router.post("/conversations/{index}/toggle", response_model=ConversationsView)
async def toggle_conversation_endpoint(
    index: int,
    session: ParticipantSession = Depends(get_participant_session),
    manager: SessionManager = Depends(get_session_manager),
) -> ConversationsView:
    """Expand a row's transcript, or collapse it when it is already open."""
    _require_admin(session)
    manager.expansion_for(session.context).toggle(index)
    return await _conversations_view(session, manager)


@router.get("/conversations/export")
async def export_all_endpoint(
    archive: bool = False,
    session: ParticipantSession = Depends(get_participant_session),
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    """Export every participant's transcript; 204 when there is nothing to export."""
    try:
        records = deduplicate_records(await _load_records(session))
        interactions = [record.data.interaction for record in records]
        filename = bulk_export_filename(tz=manager.export_timezone)
        sink = MemorySink()
        if not export_interactions_as_csv(interactions, filename, sink, manager.export_timezone):
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        if archive:
            FileSystemSink(manager.app_config.export_directory)(sink.csv_text, sink.filename)
        return _csv_response(sink)
    except InteractionError:
        raise
    except Exception as exc:
        logger.exception("Failed to export conversations")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to export conversations",
        ) from exc


@router.get("/conversations/{record_id}/export")
async def export_one_endpoint(
    record_id: str,
    session: ParticipantSession = Depends(get_participant_session),
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    """Export a single participant's transcript."""
    records = await _load_records(session)
    record = next((record for record in records if record.id == record_id), None)
    if record is None:
        raise NoActiveRecordError(f"Record {record_id} not found")
    interaction = record.data.interaction
    sink = MemorySink()
    export_interactions_as_csv(
        [interaction],
        single_export_filename(interaction, tz=manager.export_timezone),
        sink,
        manager.export_timezone,
    )
    return _csv_response(sink)


@router.delete("/conversations/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation_endpoint(
    record_id: str,
    session: ParticipantSession = Depends(get_participant_session),
    manager: SessionManager = Depends(get_session_manager),
) -> None:
    """Delete a participant's record; their next visit starts over."""
    _require_admin(session)
    await session.sync.remove(record_id)
    manager.discard_sessions_for_record(record_id)
    return None

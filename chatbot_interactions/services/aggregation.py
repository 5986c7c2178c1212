"""Cross-participant view of stored interactions for administrators."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Optional

from ..models.dashboard import ConversationRow, ConversationsView
from ..models.record import PersistedRecord
from ..utils.helpers import as_utc
from .state_machine import derive_status, past_messages

UPDATED_AT_FORMAT = "%d.%m.%Y %H:%M:%S"


def deduplicate_records(records: list[PersistedRecord]) -> list[PersistedRecord]:
    """Keep the most recent record of each creator, newest first."""
    newest_first = sorted(records, key=lambda record: as_utc(record.created_at))[::-1]
    seen: set[Optional[str]] = set()
    unique: list[PersistedRecord] = []
    for record in newest_first:
        if record.creator_id in seen:
            continue
        seen.add(record.creator_id)
        unique.append(record)
    return unique


@dataclass
class ExpansionState:
    """Which row of the table shows its transcript; at most one at a time."""

    expanded: Optional[int] = None

    def toggle(self, index: int) -> Optional[int]:
        self.expanded = None if self.expanded == index else index
        return self.expanded


def build_conversation_rows(
    records: Optional[list[PersistedRecord]],
    expanded: Optional[int] = None,
    tz: tzinfo = timezone.utc,
    error: Optional[str] = None,
) -> ConversationsView:
    """Reduce the raw record list to one row per participant.

    ``records`` is ``None`` when the list is unavailable; the view is then
    an empty table with exports disabled.
    """
    rows: list[ConversationRow] = []
    for index, record in enumerate(deduplicate_records(records or [])):
        interaction = record.data.interaction
        is_expanded = index == expanded
        transcript = None
        if is_expanded and interaction.started:
            transcript = past_messages(interaction)
            current = interaction.active_exchange
            if current is not None and not current.dismissed:
                transcript.extend(current.messages)
        rows.append(
            ConversationRow(
                index=index,
                record_id=record.id,
                member_id=record.member.id,
                member_name=record.member.name,
                description=interaction.description,
                updated_at=(
                    as_utc(interaction.updated_at).astimezone(tz).strftime(UPDATED_AT_FORMAT)
                    if interaction.updated_at
                    else "-"
                ),
                status=derive_status(interaction),
                expanded=is_expanded,
                transcript=transcript,
            )
        )
    return ConversationsView(
        rows=rows,
        expanded=expanded,
        export_enabled=bool(records),
        error=error,
    )

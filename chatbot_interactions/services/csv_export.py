"""CSV export of interaction transcripts.

The format is fixed and shared with existing downstream analysis:

* an unquoted header row with nine columns;
* one row per message, in exchange order then message order;
* every cell wrapped in double quotes, newlines replaced by a space and no
  other escaping (embedded double quotes are written as-is);
* rows joined with ``\\n`` and no trailing newline.

``csv.writer`` cannot produce quoted cells without escaping embedded
quotes, so rows are assembled by hand.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from ..models.interaction import Interaction
from ..models.message import Message
from ..utils.error_handler import MalformedTimestampError
from ..utils.helpers import as_utc, utcnow

CSV_HEADERS = [
    "Participant",
    "Participant ID",
    "Sender",
    "Sender ID",
    "Sent at",
    "Exchange",
    "Interaction",
    "Content",
    "Type",
]

SENT_AT_FORMAT = "%d/%m/%Y %H:%M"
FILENAME_TIMESTAMP_FORMAT = "%Y%m%d_%H.%M"

# Download sink: receives (csv text, filename)
CsvSink = Callable[[str, str], None]


def format_sent_at(message: Message, tz: tzinfo) -> str:
    """Format ``sent_at`` as ``dd/MM/yyyy HH:mm`` or fail loudly."""
    raw = message.sent_at
    if not raw:
        raise MalformedTimestampError(message.id, raw)
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedTimestampError(message.id, raw) from exc
    return as_utc(parsed).astimezone(tz).strftime(SENT_AT_FORMAT)


def _cell(value: str) -> str:
    return '"' + value.replace("\n", " ") + '"'


def convert_interactions_to_csv(interactions: list[Interaction], tz: tzinfo = timezone.utc) -> str:
    """Flatten every message of ``interactions`` into CSV text."""
    lines = [",".join(CSV_HEADERS)]
    for interaction in interactions:
        for exchange in interaction.exchanges.exchange_list:
            for message in exchange.messages:
                cells = [
                    interaction.participant.name,
                    interaction.participant.id,
                    message.sender.name,
                    message.sender.id,
                    format_sent_at(message, tz),
                    exchange.name,
                    interaction.name,
                    message.content,
                    "string",
                ]
                lines.append(",".join(_cell(cell) for cell in cells))
    return "\n".join(lines)


def _timestamp(now: Optional[datetime], tz: tzinfo) -> str:
    return as_utc(now or utcnow()).astimezone(tz).strftime(FILENAME_TIMESTAMP_FORMAT)


def bulk_export_filename(now: Optional[datetime] = None, tz: tzinfo = timezone.utc) -> str:
    return f"chatbot_all_{_timestamp(now, tz)}.csv"


def single_export_filename(
    interaction: Interaction, now: Optional[datetime] = None, tz: tzinfo = timezone.utc
) -> str:
    return f"chatbot_{interaction.description}_{_timestamp(now, tz)}.csv"


def export_interactions_as_csv(
    interactions: list[Interaction],
    filename: str,
    sink: CsvSink,
    tz: tzinfo = timezone.utc,
) -> bool:
    """Convert ``interactions`` and hand the CSV to ``sink``.

    Nothing is produced for an empty list.  Returns whether the sink was
    called.
    """
    if not interactions:
        logger.info("Nothing to export for {}", filename)
        return False
    csv_text = convert_interactions_to_csv(interactions, tz)
    sink(csv_text, filename)
    logger.info("Exported {} interactions to {}", len(interactions), filename)
    return True


class FileSystemSink:
    """Sink writing exports into a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def __call__(self, csv_text: str, filename: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / filename).write_text(csv_text, encoding="utf-8")


class MemorySink:
    """Sink keeping the last export in memory, used to build HTTP responses."""

    def __init__(self) -> None:
        self.csv_text: Optional[str] = None
        self.filename: Optional[str] = None

    def __call__(self, csv_text: str, filename: str) -> None:
        self.csv_text = csv_text
        self.filename = filename

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional

from vapi_viewer.app.models import LogEntry, LogEntryType, LogSession, clock_timestamp, utc_now

LOG_LINE_PATTERN = re.compile(
    r"^(?P<timestamp>\d{2}:\d{2}:\d{2}:\d{3})\s+"
    r"\[(?P<type>LOG|WARN|ERROR|CHECKPOINT)\]\s*"
    r"(?P<message>.*)$"
)


def parse_log_line(line: str, *, received_at: Optional[datetime] = None) -> LogEntry:
    match = LOG_LINE_PATTERN.match(line.strip())
    if match:
        return LogEntry(
            timestamp=match.group("timestamp"),
            type=LogEntryType(match.group("type")),
            message=match.group("message"),
        )
    return LogEntry(
        timestamp=clock_timestamp(received_at or utc_now()),
        type=LogEntryType.log,
        message=line,
    )


def parse_log_text(text: str, *, received_at: Optional[datetime] = None) -> list[LogEntry]:
    received = received_at or utc_now()
    return [
        parse_log_line(line, received_at=received)
        for line in text.splitlines()
        if line.strip()
    ]


def _coerce_entry_type(value: object) -> LogEntryType:
    if isinstance(value, str):
        try:
            return LogEntryType(value.strip().upper())
        except ValueError:
            return LogEntryType.log
    return LogEntryType.log


def coerce_log_entries(
    items: list[Any], *, received_at: Optional[datetime] = None
) -> list[LogEntry]:
    """Normalize a structured ``logs`` list.

    Objects become entries with missing fields defaulted; strings are run
    through the line parser so they may carry their own stamp and level.
    """
    received = received_at or utc_now()
    entries: list[LogEntry] = []
    for item in items:
        if isinstance(item, str):
            entries.extend(parse_log_text(item, received_at=received))
            continue
        if not isinstance(item, dict):
            entries.append(
                LogEntry(timestamp=clock_timestamp(received), message=str(item))
            )
            continue
        timestamp = item.get("timestamp")
        if not isinstance(timestamp, str) or not timestamp.strip():
            timestamp = clock_timestamp(received)
        message = item.get("message")
        if message is None:
            message = ""
        entries.append(
            LogEntry(
                timestamp=timestamp.strip(),
                type=_coerce_entry_type(item.get("type")),
                message=str(message),
            )
        )
    return entries


def format_log_session(session: LogSession) -> str:
    return "\n".join(
        f"{entry.timestamp} [{entry.type.value}] {entry.message}" for entry in session.entries
    )

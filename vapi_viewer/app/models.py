from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def clock_timestamp(value: datetime) -> str:
    """Wall-clock stamp in the HH:MM:SS:mmm form used by raw log lines."""
    return f"{value:%H:%M:%S}:{value.microsecond // 1000:03d}"


class CallRecordType(str, Enum):
    call_data = "call-data"
    vapi_call = "vapi-call"


class ConversationEventType(str, Enum):
    speech_update = "speech-update"
    status_update = "status-update"
    conversation_update = "conversation-update"


class LogEntryType(str, Enum):
    log = "LOG"
    warn = "WARN"
    error = "ERROR"
    checkpoint = "CHECKPOINT"


class CallRecord(BaseModel):
    id: str
    timestamp: str
    type: CallRecordType
    data: dict[str, Any]


class ConversationEvent(BaseModel):
    id: str
    timestamp: str
    type: ConversationEventType
    data: Any


class AssistantRecord(BaseModel):
    id: str
    timestamp: str
    type: str = "assistant"
    data: dict[str, Any]


class LogEntry(BaseModel):
    timestamp: str
    type: LogEntryType = LogEntryType.log
    message: str


class LogSession(BaseModel):
    id: str
    timestamp: str
    entries: list[LogEntry] = Field(default_factory=list)

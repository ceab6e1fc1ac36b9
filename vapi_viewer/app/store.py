from __future__ import annotations

from threading import RLock
from typing import Any, Optional, TypeVar

from vapi_viewer.app.models import (
    AssistantRecord,
    CallRecord,
    CallRecordType,
    ConversationEvent,
    ConversationEventType,
    LogEntry,
    LogSession,
    epoch_millis,
    iso_timestamp,
    utc_now,
)

T = TypeVar("T")

CONVERSATION_ID_PREFIXES = {
    ConversationEventType.speech_update: "speech",
    ConversationEventType.status_update: "status",
    ConversationEventType.conversation_update: "conversation",
}


def _prepend_capped(items: list[T], item: T, cap: int) -> None:
    items.insert(0, item)
    del items[cap:]


class StoreNotFoundError(Exception):
    pass


class InMemoryStore:
    """Bounded, newest-first history of everything the webhook has received.

    Every collection is capped; inserting past the cap evicts the oldest item.
    Nothing is persisted, so a fresh store is empty.
    """

    def __init__(
        self,
        *,
        max_calls: int = 100,
        max_conversations: int = 100,
        max_assistants: int = 100,
        max_log_sessions: int = 20,
    ) -> None:
        self._lock = RLock()
        self.max_calls = max_calls
        self.max_conversations = max_conversations
        self.max_assistants = max_assistants
        self.max_log_sessions = max_log_sessions
        self.calls: list[CallRecord] = []
        self.conversations: list[ConversationEvent] = []
        self.assistants: list[AssistantRecord] = []
        self.log_sessions: list[LogSession] = []

    def add_call(
        self, *, call_id: str, record_type: CallRecordType, data: dict[str, Any]
    ) -> CallRecord:
        with self._lock:
            record = CallRecord(
                id=call_id,
                timestamp=iso_timestamp(utc_now()),
                type=record_type,
                data=data,
            )
            _prepend_capped(self.calls, record, self.max_calls)
            return record

    def add_conversation_event(
        self, *, event_type: ConversationEventType, data: Any
    ) -> ConversationEvent:
        with self._lock:
            now = utc_now()
            event = ConversationEvent(
                id=f"{CONVERSATION_ID_PREFIXES[event_type]}-{epoch_millis(now)}",
                timestamp=iso_timestamp(now),
                type=event_type,
                data=data,
            )
            _prepend_capped(self.conversations, event, self.max_conversations)
            return event

    def upsert_assistant(
        self, *, assistant_id: str, data: dict[str, Any]
    ) -> tuple[AssistantRecord, bool]:
        """Replace the assistant in place if known, otherwise insert it at the front.

        Returns the stored record and whether an existing one was replaced.
        """
        with self._lock:
            record = AssistantRecord(
                id=assistant_id,
                timestamp=iso_timestamp(utc_now()),
                data=data,
            )
            for index, existing in enumerate(self.assistants):
                if existing.id == assistant_id:
                    self.assistants[index] = record
                    return record, True
            _prepend_capped(self.assistants, record, self.max_assistants)
            return record, False

    def merge_log_entries(
        self, *, session_id: Optional[str], entries: list[LogEntry]
    ) -> tuple[LogSession, bool]:
        """Append entries to a known session or open a new one.

        Returns the session and whether it was newly created.
        """
        with self._lock:
            now = utc_now()
            resolved_id = session_id or f"session-{epoch_millis(now)}"
            session = self.find_log_session(resolved_id)
            if session:
                session.entries.extend(entries)
                return session, False
            session = LogSession(
                id=resolved_id,
                timestamp=iso_timestamp(now),
                entries=list(entries),
            )
            _prepend_capped(self.log_sessions, session, self.max_log_sessions)
            return session, True

    def list_calls(self) -> list[CallRecord]:
        with self._lock:
            return list(self.calls)

    def list_conversations(self) -> list[ConversationEvent]:
        with self._lock:
            return list(self.conversations)

    def list_assistants(self) -> list[AssistantRecord]:
        with self._lock:
            return list(self.assistants)

    def list_log_sessions(self) -> list[LogSession]:
        with self._lock:
            return list(self.log_sessions)

    def find_log_session(self, session_id: str) -> Optional[LogSession]:
        with self._lock:
            for session in self.log_sessions:
                if session.id == session_id:
                    return session
            return None

    def get_log_session(self, session_id: str) -> LogSession:
        session = self.find_log_session(session_id)
        if not session:
            raise StoreNotFoundError(f"log session not found: {session_id}")
        return session

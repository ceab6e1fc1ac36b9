from __future__ import annotations

import logging
from typing import Any, Callable

from vapi_viewer.app.models import CallRecordType, ConversationEventType, utc_now
from vapi_viewer.app.services.classifier import (
    UPDATE_PAYLOAD_FIELDS,
    ClassifiedPayload,
    WebhookKind,
)
from vapi_viewer.app.services.log_parser import coerce_log_entries, parse_log_text
from vapi_viewer.app.store import InMemoryStore

logger = logging.getLogger("vapi_viewer")

CLINIC_INFO = "Clinic: NUSCH, Bratislava"
FALLBACK_MESSAGE = "Webhook received but not processed specifically"


class FunctionCallError(Exception):
    pass


def _jsonable(items: list) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


def _requested_session_id(function_call: dict[str, Any]) -> Any:
    session_id = function_call.get("sessionId")
    if session_id:
        return session_id
    parameters = function_call.get("parameters")
    if isinstance(parameters, dict):
        return parameters.get("sessionId")
    return None


def answer_function_call(*, store: InMemoryStore, payload: dict[str, Any]) -> dict[str, Any]:
    function_call = payload["message"].get("functionCall")
    if not isinstance(function_call, dict):
        raise FunctionCallError("Unknown function or invalid request")
    name = function_call.get("name")

    readers: dict[str, Callable[[], Any]] = {
        "getClinicInfo": lambda: CLINIC_INFO,
        "getCallsData": lambda: _jsonable(store.list_calls()),
        "getConversationsData": lambda: _jsonable(store.list_conversations()),
        "getAssistantsData": lambda: _jsonable(store.list_assistants()),
        "getLogSessions": lambda: _jsonable(store.list_log_sessions()),
    }
    if name == "getLogSession":
        session_id = _requested_session_id(function_call)
        if not session_id:
            raise FunctionCallError("Session ID is required")
        session = store.find_log_session(str(session_id))
        logger.info("function_call name=%s session_id=%s found=%s", name, session_id, bool(session))
        return {"result": session.model_dump(mode="json") if session else None}
    if not isinstance(name, str) or name not in readers:
        raise FunctionCallError("Unknown function or invalid request")
    logger.info("function_call name=%s", name)
    return {"result": readers[name]()}


def _ingest_logs(store: InMemoryStore, payload: dict[str, Any]) -> dict[str, Any]:
    received_at = utc_now()
    if isinstance(payload.get("logs"), list):
        entries = coerce_log_entries(payload["logs"], received_at=received_at)
    else:
        entries = parse_log_text(payload["message"], received_at=received_at)
    session_id = payload.get("sessionId")
    session, created = store.merge_log_entries(
        session_id=str(session_id) if session_id else None,
        entries=entries,
    )
    logger.info(
        "webhook_ingested kind=log_submission id=%s entries=%s created=%s",
        session.id,
        len(entries),
        created,
    )
    return {
        "success": True,
        "message": f"Added {len(entries)} log entries to session {session.id}",
    }


def _ingest_assistant(store: InMemoryStore, payload: dict[str, Any]) -> dict[str, Any]:
    record, replaced = store.upsert_assistant(assistant_id=str(payload["id"]), data=payload)
    logger.info(
        "webhook_ingested kind=assistant_config id=%s replaced=%s", record.id, replaced
    )
    return {"success": True, "message": "Assistant data received successfully"}


def _ingest_vapi_call(store: InMemoryStore, payload: dict[str, Any]) -> dict[str, Any]:
    record = store.add_call(
        call_id=str(payload["id"]),
        record_type=CallRecordType.vapi_call,
        data=payload,
    )
    logger.info("webhook_ingested kind=vapi_call id=%s", record.id)
    return {"success": True, "message": "VAPI call data received successfully"}


def _ingest_conversation_update(store: InMemoryStore, payload: dict[str, Any]) -> dict[str, Any]:
    event_type = ConversationEventType(payload["type"])
    event = store.add_conversation_event(
        event_type=event_type,
        data=payload[UPDATE_PAYLOAD_FIELDS[event_type]],
    )
    logger.info("webhook_ingested kind=%s id=%s", event_type.value, event.id)
    return {"success": True, "message": f"{event_type.value} received successfully"}


def _ingest_call_data(store: InMemoryStore, payload: dict[str, Any]) -> dict[str, Any]:
    record = store.add_call(
        call_id=str(payload["callId"]),
        record_type=CallRecordType.call_data,
        data=payload["callData"],
    )
    logger.info("webhook_ingested kind=call_data id=%s", record.id)
    return {"success": True, "message": "Call data received successfully"}


INGESTORS: dict[WebhookKind, Callable[[InMemoryStore, dict[str, Any]], dict[str, Any]]] = {
    WebhookKind.log_submission: _ingest_logs,
    WebhookKind.assistant_config: _ingest_assistant,
    WebhookKind.vapi_call: _ingest_vapi_call,
    WebhookKind.conversation_update: _ingest_conversation_update,
    WebhookKind.call_data: _ingest_call_data,
}


def apply_classified(*, store: InMemoryStore, classified: ClassifiedPayload) -> dict[str, Any]:
    if classified.kind == WebhookKind.function_call:
        return answer_function_call(store=store, payload=classified.payload)
    ingest = INGESTORS.get(classified.kind)
    if ingest is None:
        logger.info("webhook_unrecognized payload_type=%s", type(classified.payload).__name__)
        return {
            "success": True,
            "message": FALLBACK_MESSAGE,
            "receivedData": classified.payload,
        }
    return ingest(store, classified.payload)


from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from vapi_viewer.app.models import ConversationEventType

PHONE_CALL_TYPES = {"inboundPhoneCall", "outboundPhoneCall"}

UPDATE_PAYLOAD_FIELDS = {
    ConversationEventType.speech_update: "speechUpdate",
    ConversationEventType.status_update: "statusUpdate",
    ConversationEventType.conversation_update: "conversationUpdate",
}


class WebhookKind(str, Enum):
    log_submission = "log_submission"
    assistant_config = "assistant_config"
    vapi_call = "vapi_call"
    conversation_update = "conversation_update"
    call_data = "call_data"
    function_call = "function_call"
    unrecognized = "unrecognized"


@dataclass(frozen=True)
class ClassifiedPayload:
    kind: WebhookKind
    payload: Any

    @property
    def requires_secret(self) -> bool:
        return self.kind != WebhookKind.function_call


def is_log_submission(payload: dict[str, Any]) -> bool:
    if isinstance(payload.get("logs"), list):
        return True
    return bool(payload.get("sessionId")) and isinstance(payload.get("message"), str)


def is_assistant_config(payload: dict[str, Any]) -> bool:
    return bool(payload.get("id")) and all(
        key in payload for key in ("transcriber", "model", "voice")
    )


def is_vapi_call(payload: dict[str, Any]) -> bool:
    call_type = payload.get("type")
    return bool(payload.get("id")) and isinstance(call_type, str) and call_type in PHONE_CALL_TYPES


def is_conversation_update(payload: dict[str, Any]) -> bool:
    raw_type = payload.get("type")
    if not isinstance(raw_type, str):
        return False
    try:
        event_type = ConversationEventType(raw_type)
    except ValueError:
        return False
    return UPDATE_PAYLOAD_FIELDS[event_type] in payload


def is_call_data(payload: dict[str, Any]) -> bool:
    return bool(payload.get("callId")) and isinstance(payload.get("callData"), dict)


def is_function_call(payload: dict[str, Any]) -> bool:
    message = payload.get("message")
    return isinstance(message, dict) and message.get("type") == "function-call"


# Order is precedence: the first predicate that accepts the payload wins.
CLASSIFICATION_RULES: list[tuple[WebhookKind, Callable[[dict[str, Any]], bool]]] = [
    (WebhookKind.log_submission, is_log_submission),
    (WebhookKind.assistant_config, is_assistant_config),
    (WebhookKind.vapi_call, is_vapi_call),
    (WebhookKind.conversation_update, is_conversation_update),
    (WebhookKind.call_data, is_call_data),
    (WebhookKind.function_call, is_function_call),
]


def classify(payload: Any) -> ClassifiedPayload:
    if isinstance(payload, dict):
        for kind, matches in CLASSIFICATION_RULES:
            if matches(payload):
                return ClassifiedPayload(kind=kind, payload=payload)
    return ClassifiedPayload(kind=WebhookKind.unrecognized, payload=payload)

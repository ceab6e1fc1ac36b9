from __future__ import annotations

import os
from dataclasses import dataclass


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    vapi_secret: str
    vapi_secret_header: str
    max_calls: int
    max_conversations: int
    max_assistants: int
    max_log_sessions: int


def load_settings() -> Settings:
    return Settings(
        vapi_secret=os.getenv("VAPI_SECRET", "").strip(),
        vapi_secret_header=os.getenv("VAPI_SECRET_HEADER", "x-vapi-secret").strip().lower(),
        max_calls=max(1, _int_env("MAX_CALLS", 100)),
        max_conversations=max(1, _int_env("MAX_CONVERSATIONS", 100)),
        max_assistants=max(1, _int_env("MAX_ASSISTANTS", 100)),
        max_log_sessions=max(1, _int_env("MAX_LOG_SESSIONS", 20)),
    )

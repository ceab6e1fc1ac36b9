from __future__ import annotations

import argparse
import json
import sys
import time
import urllib.error
import urllib.request


def sample_payloads(index: int, session_id: str) -> dict[str, dict]:
    return {
        "call-data": {
            "callId": f"call_mock_{index}",
            "callData": {
                "caller": f"+42190000{index:04d}",
                "recipient": "+421212345678",
                "duration": 30 + index,
                "status": "completed",
                "transcription": "Dobrý deň, chcel by som sa objednať.",
                "sentiment": "positive",
                "topics": ["appointment"],
            },
        },
        "vapi-call": {
            "id": f"vapi_call_mock_{index}",
            "type": "inboundPhoneCall",
            "status": "ended",
            "startedAt": "2024-05-01T08:00:00.000Z",
            "endedAt": "2024-05-01T08:02:10.000Z",
            "cost": 0.14,
            "costBreakdown": {
                "transport": 0.01,
                "stt": 0.02,
                "llm": 0.05,
                "tts": 0.04,
                "vapi": 0.02,
                "total": 0.14,
            },
            "artifact": {"transcript": "AI: Dobrý deň\nUser: Dobrý deň"},
            "analysis": {"summary": "Caller booked an appointment.", "successEvaluation": "true"},
        },
        "assistant": {
            "id": "asst_mock_reception",
            "name": f"Reception mock {index}",
            "transcriber": {"provider": "deepgram", "language": "sk"},
            "model": {"provider": "openai", "model": "gpt-4o", "temperature": 0.3},
            "voice": {"provider": "11labs", "voiceId": "mock-voice"},
        },
        "speech-update": {
            "type": "speech-update",
            "speechUpdate": {"status": "started", "role": "assistant"},
        },
        "status-update": {"type": "status-update", "statusUpdate": {"status": "in-progress"}},
        "conversation-update": {
            "type": "conversation-update",
            "conversationUpdate": {"messages": [{"role": "user", "message": "Ahoj"}]},
        },
        "logs": {
            "sessionId": session_id,
            "message": (
                f"{time.strftime('%H:%M:%S')}:000 [CHECKPOINT] mock batch {index}\n"
                f"{time.strftime('%H:%M:%S')}:500 [WARN] slow model response\n"
                "line without a recognised prefix"
            ),
        },
        "function-call": {
            "message": {"type": "function-call", "functionCall": {"name": "getClinicInfo"}},
        },
    }


def post_json(url: str, body: bytes, headers: dict[str, str]) -> tuple[int, str]:
    request = urllib.request.Request(url, data=body, method="POST")
    request.add_header("Content-Type", "application/json")
    for key, value in headers.items():
        request.add_header(key, value)
    try:
        with urllib.request.urlopen(request, timeout=15) as response:
            content = response.read().decode("utf-8")
            return response.status, content
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8")


def main() -> int:
    kinds = list(sample_payloads(0, "").keys())
    parser = argparse.ArgumentParser(description="Send mock VAPI webhook payloads to a local API.")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    parser.add_argument("--kind", choices=["all", *kinds], default="all")
    parser.add_argument("--count", type=int, default=1)
    parser.add_argument("--start-index", type=int, default=1)
    parser.add_argument("--session-id", default=f"session-{int(time.time() * 1000)}")
    parser.add_argument("--secret", default="")
    args = parser.parse_args()

    endpoint = f"{args.base_url.rstrip('/')}/api/vapi-actions"
    headers: dict[str, str] = {}
    if args.secret:
        headers["X-VAPI-SECRET"] = args.secret

    selected = kinds if args.kind == "all" else [args.kind]
    for index in range(args.start_index, args.start_index + args.count):
        payloads = sample_payloads(index, args.session_id)
        for kind in selected:
            body = json.dumps(payloads[kind], separators=(",", ":")).encode("utf-8")
            status_code, response = post_json(endpoint, body, headers)
            print(f"{status_code} {kind} {response}")

    return 0


if __name__ == "__main__":
    sys.exit(main())

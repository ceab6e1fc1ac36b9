from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from vapi_viewer.app.main import create_app
from vapi_viewer.app.services.webhooks import SignatureVerificationError, verify_shared_secret

ENDPOINT = "/api/vapi-actions"
SECRET = "topsecret"


def _client(monkeypatch, secret: str = SECRET) -> TestClient:
    monkeypatch.setenv("VAPI_SECRET", secret)
    return TestClient(create_app())


def _calls(client: TestClient) -> list:
    response = client.post(
        ENDPOINT,
        json={"message": {"type": "function-call", "functionCall": {"name": "getCallsData"}}},
    )
    assert response.status_code == 200
    return response.json()["result"]


def test_missing_secret_header_is_unauthorized(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post(ENDPOINT, json={"callId": "c1", "callData": {"caller": "x"}})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert _calls(client) == []


def test_mismatched_secret_header_is_unauthorized(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post(
        ENDPOINT,
        json={"id": "call_1", "type": "outboundPhoneCall"},
        headers={"X-VAPI-SECRET": "wrong-secret"},
    )

    assert response.status_code == 401
    assert _calls(client) == []


def test_matching_secret_header_is_processed(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post(
        ENDPOINT,
        json={"callId": "c1", "callData": {"caller": "x"}},
        headers={"X-VAPI-SECRET": SECRET},
    )

    assert response.status_code == 200
    assert [call["id"] for call in _calls(client)] == ["c1"]


def test_log_submission_requires_secret(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post(ENDPOINT, json={"sessionId": "s1", "message": "hello"})

    assert response.status_code == 401


def test_unrecognized_payload_requires_secret(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post(ENDPOINT, json={"hello": "world"})

    assert response.status_code == 401


def test_function_call_bypasses_secret(monkeypatch) -> None:
    client = _client(monkeypatch)

    response = client.post(
        ENDPOINT,
        json={"message": {"type": "function-call", "functionCall": {"name": "getClinicInfo"}}},
    )

    assert response.status_code == 200
    assert response.json() == {"result": "Clinic: NUSCH, Bratislava"}


def test_no_secret_configured_skips_check(monkeypatch) -> None:
    client = _client(monkeypatch, secret="")

    response = client.post(ENDPOINT, json={"callId": "c1", "callData": {}})

    assert response.status_code == 200


def test_custom_secret_header(monkeypatch) -> None:
    monkeypatch.setenv("VAPI_SECRET_HEADER", "X-Webhook-Token")
    client = _client(monkeypatch)

    response = client.post(
        ENDPOINT,
        json={"callId": "c1", "callData": {}},
        headers={"X-Webhook-Token": SECRET},
    )

    assert response.status_code == 200


def test_verify_shared_secret_is_exact_match() -> None:
    verify_shared_secret(Headers({"x-vapi-secret": SECRET}), SECRET)
    with pytest.raises(SignatureVerificationError):
        verify_shared_secret(Headers({"x-vapi-secret": SECRET.upper()}), SECRET)
    with pytest.raises(SignatureVerificationError):
        verify_shared_secret(Headers({}), SECRET)
    verify_shared_secret(Headers({}), "")

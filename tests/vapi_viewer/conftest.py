from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from vapi_viewer.app.main import create_app


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("VAPI_SECRET", "")
    app = create_app()
    return TestClient(app)


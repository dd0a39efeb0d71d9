import os
import uuid

import httpx
import pytest


@pytest.fixture(scope="session", autouse=True)
def set_test_env(tmp_path_factory):
    db_file = tmp_path_factory.mktemp("data") / "test.db"
    os.environ["DB_PATH"] = str(db_file)
    os.environ["SECRET_KEY"] = "test-secret-key-for-testing"
    os.environ.pop("UNSCALED_QUALIFIERS", None)
    from weekly_menu.db.database import init_db
    init_db()


@pytest.fixture(scope="session")
def client(set_test_env):
    from fastapi.testclient import TestClient
    from app.main import app
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture(scope="session")
def authed_client(client):
    client.post("/signup", data={"username": "tester", "password": "testpass"}, follow_redirects=False)
    return client


@pytest.fixture
def user_id():
    """A fresh user for core-level tests."""
    from weekly_menu.core import users as users_core
    return users_core.create(f"user-{uuid.uuid4().hex[:8]}", "secret-pass")


@pytest.fixture
def fake_ai(monkeypatch):
    """Route AI requests to a handler; returns the list of captured requests.

    Set fake_ai.reply to the completion text (or fake_ai.status for an error).
    """
    from weekly_menu import config
    from weekly_menu.core import ai_assistant

    class FakeAI:
        reply = ""
        status = 200
        requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        FakeAI.requests.append(request)
        if FakeAI.status != 200:
            return httpx.Response(FakeAI.status, text="upstream says no")
        return httpx.Response(200, json={
            "choices": [{"message": {"role": "assistant", "content": FakeAI.reply}}],
        })

    FakeAI.requests = []
    monkeypatch.setattr(config, "ai_api_key", lambda: "test-key")
    monkeypatch.setattr(
        ai_assistant, "_http_client",
        lambda: httpx.Client(transport=httpx.MockTransport(handler)),
    )
    return FakeAI

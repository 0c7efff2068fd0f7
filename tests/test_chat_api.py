import uuid

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from api.features.chat.exceptions import (
    CompletionTimeoutError,
    GenerationError,
    ServiceUnavailableError,
)
from api.main import app
from core.settings import SETTINGS


@pytest.fixture
def client(fake_completion):
    completion_provider = app.container.infrastructure.completion_client
    completion_provider.override(providers.Object(fake_completion))
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        completion_provider.reset_override()


def send(client, message, session_id=None):
    payload = {"message": message}
    if session_id is not None:
        payload["sessionId"] = session_id
    return client.post("/api/chat/message", json=payload)


def test_first_message_starts_session(client):
    response = send(client, "Hi")

    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "Hi! How can I help you today?"
    uuid.UUID(body["sessionId"])
    uuid.UUID(body["messageId"])

    history = client.get(f"/api/chat/history/{body['sessionId']}")
    assert history.status_code == 200
    messages = history.json()["messages"]
    assert [(m["sender"], m["text"]) for m in messages] == [
        ("user", "Hi"),
        ("ai", body["reply"]),
    ]
    assert messages[-1]["id"] == body["messageId"]
    assert history.json()["conversation"]["id"] == body["sessionId"]


def test_follow_up_continues_session(client, fake_completion):
    session_id = send(client, "Do you ship internationally?").json()["sessionId"]
    fake_completion.reply = "Standard shipping takes 3-5 business days."

    response = send(client, "How long does shipping take?", session_id)

    assert response.status_code == 200
    assert response.json()["sessionId"] == session_id
    messages = client.get(f"/api/chat/history/{session_id}").json()["messages"]
    assert [m["sender"] for m in messages] == ["user", "ai", "user", "ai"]
    context, _ = fake_completion.calls[-1]
    assert [m.text for m in context][-1] == "How long does shipping take?"


def test_message_is_trimmed_before_storage(client):
    session_id = send(client, "   Hi there  \n").json()["sessionId"]

    messages = client.get(f"/api/chat/history/{session_id}").json()["messages"]

    assert messages[0]["text"] == "Hi there"


@pytest.mark.parametrize("message", ["", "   ", "\n\t"])
def test_empty_message_rejected(client, fake_completion, message):
    response = send(client, message)

    assert response.status_code == 400
    assert "Message cannot be empty" in response.json()["error"]
    assert fake_completion.calls == []


def test_too_long_message_rejected(client, fake_completion):
    response = send(client, "x" * (SETTINGS.CHAT.MAX_MESSAGE_LENGTH + 1))

    assert response.status_code == 400
    assert "too long" in response.json()["error"]
    assert fake_completion.calls == []


def test_message_at_length_limit_accepted(client):
    response = send(client, "x" * SETTINGS.CHAT.MAX_MESSAGE_LENGTH)

    assert response.status_code == 200


def test_missing_message_rejected(client):
    response = client.post("/api/chat/message", json={})

    assert response.status_code == 400


def test_malformed_session_id_rejected(client, fake_completion):
    response = send(client, "Hi", "not-a-uuid")

    assert response.status_code == 400
    assert "Invalid session ID format" in response.json()["error"]
    assert fake_completion.calls == []


@pytest.mark.parametrize(
    "session_id",
    [
        uuid.uuid4().hex,
        "{%s}" % uuid.uuid4(),
        "urn:uuid:%s" % uuid.uuid4(),
    ],
)
def test_non_canonical_session_id_rejected(client, fake_completion, session_id):
    response = send(client, "Hi", session_id)

    assert response.status_code == 400
    assert "Invalid session ID format" in response.json()["error"]
    assert fake_completion.calls == []


def test_unknown_session_id_starts_new_session(client):
    stale_id = str(uuid.uuid4())

    response = send(client, "Hi", stale_id)

    assert response.status_code == 200
    assert response.json()["sessionId"] != stale_id
    assert client.get(f"/api/chat/history/{stale_id}").status_code == 404


def test_history_for_unknown_session(client):
    response = client.get(f"/api/chat/history/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["error"] == "Conversation not found"


def test_history_with_malformed_session_id(client):
    response = client.get("/api/chat/history/abc")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid session ID format"


def test_history_with_undashed_session_id(client):
    session_id = send(client, "Hi").json()["sessionId"]

    response = client.get(f"/api/chat/history/{uuid.UUID(session_id).hex}")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid session ID format"


@pytest.mark.parametrize(
    "error, status_code",
    [
        (ServiceUnavailableError("http://localhost:11434", "Connection refused"), 503),
        (CompletionTimeoutError(600), 504),
        (GenerationError("No response generated from LLM"), 502),
    ],
)
def test_completion_failure_reports_session_and_keeps_user_turn(
    client, fake_completion, error, status_code
):
    fake_completion.error = error

    response = send(client, "Hi")

    assert response.status_code == status_code
    body = response.json()
    assert body["error"] == error.message
    assert body["error_code"] == error.error_code
    messages = client.get(f"/api/chat/history/{body['sessionId']}").json()["messages"]
    assert [(m["sender"], m["text"]) for m in messages] == [("user", "Hi")]


def test_offline_error_tells_user_to_start_ollama(client, fake_completion):
    fake_completion.error = ServiceUnavailableError(
        "http://localhost:11434", "Connection refused"
    )

    response = send(client, "Hi")

    assert response.status_code == 503
    assert "offline" in response.json()["error"]


def test_failed_turn_can_be_retried_on_same_session(client, fake_completion):
    fake_completion.error = CompletionTimeoutError(600)
    session_id = send(client, "Hi").json()["sessionId"]
    fake_completion.error = None

    response = send(client, "Hi", session_id)

    assert response.status_code == 200
    assert response.json()["sessionId"] == session_id
    messages = client.get(f"/api/chat/history/{session_id}").json()["messages"]
    assert [m["sender"] for m in messages] == ["user", "user", "ai"]


def test_chat_health(client):
    response = client.get("/api/chat/health")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"status", "timestamp"}
    assert body["status"] == "ok"


@pytest.mark.parametrize("healthy", [True, False])
def test_root_health_reports_llm_reachability(client, fake_completion, healthy):
    fake_completion.healthy = healthy

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "llm": healthy}


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/chat/nope")

    assert response.status_code == 404
    assert response.json()["status_code"] == 404


class MinimalCompletionClient:
    async def generate_reply(self, history, user_message):
        return "ok"

    async def check_health(self):
        return False


def test_startup_needs_only_the_completion_interface():
    completion_provider = app.container.infrastructure.completion_client
    completion_provider.override(providers.Object(MinimalCompletionClient()))
    try:
        with TestClient(app) as test_client:
            health = test_client.get("/health")
            reply = send(test_client, "Hi")
    finally:
        completion_provider.reset_override()

    assert health.json() == {"status": "ok", "llm": False}
    assert reply.status_code == 200
    assert reply.json()["reply"] == "ok"

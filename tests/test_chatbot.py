import httpx
import openai
import pytest

from api.services import chat_api
from api.services.chat_api import ChatAPI, build_context


class FakeChatAPI:
    calls = []
    error = None

    def reply(self, message, history):
        if FakeChatAPI.error:
            raise FakeChatAPI.error
        FakeChatAPI.calls.append((message, history))
        return "We build web and mobile apps."


@pytest.fixture
def fake_chat(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "test-key")
    FakeChatAPI.calls = []
    FakeChatAPI.error = None
    monkeypatch.setattr("api.routers.chatbot_router.ChatAPI", FakeChatAPI)
    return FakeChatAPI


def _status_error(cls, status_code):
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    return cls("upstream error", response=httpx.Response(status_code, request=request), body=None)


def test_health_reports_configuration(client, monkeypatch):
    assert client.get("/api/chatbot/health").json() == {"status": "ok", "configured": False}
    monkeypatch.setenv("GROQ_API_KEY", "test-key")
    assert client.get("/api/chatbot/health").json()["configured"] is True


def test_message_reply(client, fake_chat):
    response = client.post(
        "/api/chatbot/message",
        json={"message": "  What do you do? ", "conversationHistory": [{"sender": "user", "text": "hi"}]},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "response": "We build web and mobile apps."}
    message, history = fake_chat.calls[0]
    assert message == "What do you do?"
    assert history == [{"sender": "user", "text": "hi"}]


def test_empty_message(client, fake_chat):
    response = client.post("/api/chatbot/message", json={"message": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_not_configured(client):
    response = client.post("/api/chatbot/message", json={"message": "hello"})
    assert response.status_code == 500
    assert response.json()["error"] == "Chatbot service not configured"


def test_rate_limited_upstream(client, fake_chat):
    fake_chat.error = _status_error(openai.RateLimitError, 429)
    response = client.post("/api/chatbot/message", json={"message": "hello"})
    assert response.status_code == 429


def test_bad_api_key_upstream(client, fake_chat):
    fake_chat.error = _status_error(openai.AuthenticationError, 401)
    response = client.post("/api/chatbot/message", json={"message": "hello"})
    assert response.status_code == 500
    assert response.json()["error"] == "Invalid API key"


def test_unexpected_failure(client, fake_chat):
    fake_chat.error = RuntimeError("boom")
    response = client.post("/api/chatbot/message", json={"message": "hello"})
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate response"


def test_context_includes_site_content(mongo):
    mongo.get_collection("services").insert_one({"title": "Web Development", "description": "Fast sites"})
    mongo.get_collection("team_members").insert_one({"name": "Priya", "role": "CTO"})

    context = build_context()

    assert "SERVICES:\n1. Web Development - Fast sites" in context
    assert "TEAM MEMBERS:\n1. Priya - CTO" in context
    assert "BLOG POSTS" not in context
    assert "COMPANY INFORMATION" in context


def test_context_falls_back_when_database_fails(monkeypatch):
    def broken_driver():
        raise RuntimeError("db down")

    monkeypatch.setattr(chat_api, "DbaseDriver", broken_driver)
    assert build_context() == chat_api.FALLBACK_CONTEXT


def test_history_is_trimmed_and_mapped():
    history = [{"sender": "user" if i % 2 else "bot", "text": str(i)} for i in range(15)]

    messages = ChatAPI.build_messages("system", history, "latest")

    assert messages[0] == {"role": "system", "content": "system"}
    assert len(messages) == 1 + 10 + 1
    assert messages[1] == {"role": "user", "content": "5"}
    assert messages[2] == {"role": "assistant", "content": "6"}
    assert messages[-1] == {"role": "user", "content": "latest"}

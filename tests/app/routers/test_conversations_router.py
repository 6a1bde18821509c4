"""Tests for conversation routes."""

from fastapi.testclient import TestClient

from tests.fixtures.conversation_fixtures import instagram_message, instagram_payload


def test_list_conversations_empty(client: TestClient):
    assert client.get("/api/conversations").json() == []
    assert client.get("/api/threads").json() == []


def test_get_conversation(client: TestClient, seeded_conversation):
    resp = client.get(f"/api/conversations/{seeded_conversation.id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == seeded_conversation.id
    assert data["displayName"] == seeded_conversation.display_name
    assert client.get(f"/api/threads/{seeded_conversation.id}").json() == data


def test_get_conversation_not_found(client: TestClient):
    assert client.get("/api/conversations/nope").status_code == 404


def test_human_message_sets_ai_paused(client: TestClient, seeded_conversation, fake_graph):
    resp = client.post(
        f"/api/conversations/{seeded_conversation.id}/message", json={"text": "Sam here!"}
    )
    assert resp.status_code == 200
    message = resp.json()["data"]
    assert message["text"] == "Sam here!"
    assert message["isHumanOverride"] is True
    assert message["status"] == "sent"

    conversation = client.get(f"/api/conversations/{seeded_conversation.id}").json()
    assert conversation["aiPaused"] is True
    assert conversation["messages"][-1]["id"] == message["id"]
    assert fake_graph.sent_bodies() == [
        {"recipient": {"id": seeded_conversation.external_user_id}, "message": {"text": "Sam here!"}}
    ]


def test_no_ai_reply_after_human_takeover(client: TestClient, seeded_conversation, scripted_model):
    client.post(f"/api/threads/{seeded_conversation.id}/send", json={"text": "I'll handle it"})
    payload = instagram_payload(
        instagram_message(seeded_conversation.external_user_id, "m-next", "ok thanks")
    )
    client.post("/webhook/instagram", json=payload)

    conversation = client.get(f"/api/conversations/{seeded_conversation.id}").json()
    assert [m["direction"] for m in conversation["messages"][-2:]] == ["outgoing", "incoming"]
    assert scripted_model.calls == []


def test_human_message_validation(client: TestClient, seeded_conversation):
    resp = client.post(f"/api/conversations/{seeded_conversation.id}/message", json={"text": ""})
    assert resp.status_code == 422


def test_human_message_unknown_conversation(client: TestClient):
    resp = client.post("/api/conversations/nope/message", json={"text": "hi"})
    assert resp.status_code == 404


def test_failed_human_send_is_recorded(client: TestClient, seeded_conversation, fake_graph):
    fake_graph.reject_sends = True
    resp = client.post(
        f"/api/conversations/{seeded_conversation.id}/message", json={"text": "hello?"}
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "failed"


def test_pause_and_resume(client: TestClient, seeded_conversation):
    resp = client.post(f"/api/conversations/{seeded_conversation.id}/pause")
    assert resp.json()["aiPaused"] is True
    resp = client.post(f"/api/conversations/{seeded_conversation.id}/resume")
    assert resp.json()["aiPaused"] is False
    assert client.post("/api/conversations/nope/pause").status_code == 404


def test_delete_conversation(client: TestClient, seeded_conversation):
    assert client.delete(f"/api/conversations/{seeded_conversation.id}").status_code == 204
    assert client.get("/api/conversations").json() == []
    assert client.delete(f"/api/conversations/{seeded_conversation.id}").status_code == 404


def test_analyze_conversation(client: TestClient, seeded_conversation, scripted_model):
    scripted_model.reply = "Intent: buying a gift. Next: share price. Tone: warm."
    resp = client.post("/api/ai/analyze", json={"threadId": seeded_conversation.id})
    assert resp.status_code == 200
    assert resp.json() == {"analysis": scripted_model.reply}


def test_analyze_failure(client: TestClient, seeded_conversation, scripted_model):
    scripted_model.error = RuntimeError("timeout")
    resp = client.post("/api/ai/analyze", json={"threadId": seeded_conversation.id})
    assert resp.status_code == 502
    assert client.get("/api/logs").json()[0]["outcome"] == "AI Analysis Failed"


def test_analyze_unknown_conversation(client: TestClient):
    assert client.post("/api/ai/analyze", json={"threadId": "nope"}).status_code == 404

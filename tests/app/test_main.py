"""Tests for the application factory and the SQL storage backend behind it."""

import threading

import httpx
import pytest
from fastapi.testclient import TestClient

from app.commands.webhooks import IngestWebhookCommand
from app.config import Settings
from app.db import Base, build_engine, build_session_factory
from app.main import build_store, create_app
from app.schemas.messaging import InboundEvent, Platform
from app.stores import MemoryKeyValueStore, SqlKeyValueStore
from tests.fixtures.conversation_fixtures import instagram_message, instagram_payload


class ThreadRecordingStore(SqlKeyValueStore):
    """SQL store that remembers which thread ran each call."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.threads: list[int] = []

    def get(self, key):
        self.threads.append(threading.get_ident())
        return super().get(key)

    def put(self, key, value):
        self.threads.append(threading.get_ident())
        super().put(key, value)


@pytest.fixture
def sql_store(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'relay.db'}")
    Base.metadata.create_all(bind=engine)
    yield ThreadRecordingStore(build_session_factory(engine))
    engine.dispose()


@pytest.fixture
def sql_app(settings, sql_store, fake_graph, llm_factory):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_graph.handler))
    return create_app(
        testing=True,
        settings=settings,
        store=sql_store,
        http_client=http_client,
        llm_factory=llm_factory,
    )


def test_webhook_flow_on_sql_backend(sql_app, scripted_model):
    with TestClient(sql_app) as client:
        payload = instagram_payload(instagram_message("123", "m1", "Hi"))
        assert client.post("/webhook/instagram", json=payload).status_code == 200
        assert client.post("/webhook/instagram", json=payload).status_code == 200

        [conversation] = client.get("/api/conversations").json()
        assert conversation["externalUserId"] == "123"
        assert [m["text"] for m in conversation["messages"]] == ["Hi", scripted_model.reply]

        outcomes = [e["outcome"] for e in client.get("/api/logs").json()]
        assert outcomes.count("Event Received") == 2

        assert client.delete(f"/api/conversations/{conversation['id']}").status_code == 204
        assert client.get("/api/conversations").json() == []
        assert client.get("/health").json()["conversations"] == 0


@pytest.mark.asyncio
async def test_store_calls_run_off_the_event_loop(sql_app, sql_store):
    state = sql_app.state.relay
    event = InboundEvent(
        platform=Platform.INSTAGRAM, sender_id="123", event_id="m1", text="Hi"
    )
    sql_store.threads.clear()

    await IngestWebhookCommand(state).process_events([event])

    assert state.conversations.count() == 1
    assert sql_store.threads
    assert threading.get_ident() not in sql_store.threads


def test_build_store_selects_backend(monkeypatch, tmp_path):
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'store.db'}")
    assert isinstance(build_store(Settings(storage_backend="memory")), MemoryKeyValueStore)
    store = build_store(Settings(storage_backend="database"))
    assert isinstance(store, SqlKeyValueStore)
    store.put("settings", {"verify_token": "x"})
    assert store.get("settings") == {"verify_token": "x"}

    with pytest.raises(ValueError):
        build_store(Settings(storage_backend="redis"))

import httpx
import pytest
from fastapi.testclient import TestClient

from app.db import Base, build_engine, build_session_factory
from app.main import create_app
from app.models import KeyValueEntry  # noqa: F401
from app.stores import MemoryKeyValueStore

pytest_plugins = [
    "tests.fixtures.settings_fixtures",
    "tests.fixtures.graph_fixtures",
    "tests.fixtures.llm_fixtures",
    "tests.fixtures.conversation_fixtures",
]


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def db_session_factory():
    """sessionmaker bound to a fresh in-memory SQLite database."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    factory = build_session_factory(engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(settings, store, fake_graph, llm_factory):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_graph.handler))
    return create_app(
        testing=True,
        settings=settings,
        store=store,
        http_client=http_client,
        llm_factory=llm_factory,
    )


@pytest.fixture
def state(app):
    return app.state.relay


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c

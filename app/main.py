"""
Application factory.

create_app() wires settings, logging, the storage backend and the service
container, then mounts the routers. Tests pass their own store, HTTP client
and AI model factory.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.core.app_state import AppState
from app.db import Base, build_engine, build_session_factory
from app.infra.logging_config import setup_logging
from app.routers import (
    conversations_router,
    logs_router,
    settings_router,
    system,
    webhooks,
)
from app.services.reply_dispatcher import LLMFactory
from app.stores import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore, StorageError

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> KeyValueStore:
    """Pick the KV backend named by STORAGE_BACKEND."""
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "database":
        url = settings.database_url_obj
        logger.info("Using database store (%s)", url.get_backend_name())
        engine = build_engine(settings.database_url)
        Base.metadata.create_all(bind=engine)
        return SqlKeyValueStore(build_session_factory(engine))
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def create_app(
    testing: bool = False,
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    llm_factory: Optional[LLMFactory] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    if store is None:
        store = MemoryKeyValueStore() if testing else build_store(settings)
    state = AppState(settings, store, http_client=http_client, llm_factory=llm_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "%s starting (environment=%s, storage=%s)",
            settings.app_name,
            settings.environment,
            type(store).__name__,
        )
        yield
        await state.aclose()

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
    )
    app.state.relay = state

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})

    app.include_router(webhooks.router)
    app.include_router(conversations_router.router)
    app.include_router(logs_router.router)
    app.include_router(settings_router.router)
    app.include_router(system.router)

    return app


app = create_app()

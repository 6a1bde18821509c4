"""
Process-wide service container.

Built once per application in create_app() and reachable from routes via
request.app.state.relay. Every collaborator is injected here, so tests can
swap the store, the HTTP transport or the AI model.
"""

from __future__ import annotations

from typing import Optional

import httpx

from app.adapters.instagram import InstagramAdapter
from app.adapters.whatsapp import WhatsAppAdapter
from app.clients.graph_api import GraphApiClient
from app.config import Settings
from app.core.dedup import RecentIdWindow
from app.core.keyed_lock import KeyedLock
from app.core.registry import AdapterRegistry
from app.schemas.settings import RuntimeConfig
from app.services.config_service import ConfigService
from app.services.conversation_service import ConversationService
from app.services.event_log_service import EventLogService
from app.services.reply_dispatcher import LLMFactory, ReplyDispatcher
from app.services.thread_reconciler import ThreadReconciler
from app.stores.base import KeyValueStore
from app.workers.llm import LLMRunner, build_llm_runner


class AppState:
    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore,
        http_client: Optional[httpx.AsyncClient] = None,
        llm_factory: Optional[LLMFactory] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.event_log = EventLogService(store, settings.event_log_capacity)
        self.config_service = ConfigService(store, settings, self.event_log)
        self.conversations = ConversationService(store)
        self.locks = KeyedLock()
        self.seen_events = RecentIdWindow(settings.dedup_window_size)

        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.outbound_timeout_seconds
        )
        self.graph = GraphApiClient(
            self.http_client,
            self.config_service,
            self.event_log,
            base_url=settings.graph_api_base_url,
        )
        self.registry = AdapterRegistry()
        self.registry.register(InstagramAdapter(self.graph))
        self.registry.register(WhatsAppAdapter(self.graph))

        self.llm_factory: LLMFactory = llm_factory or self._default_llm_factory
        self.reconciler = ThreadReconciler(self.conversations, self.registry, self.locks)
        self.dispatcher = ReplyDispatcher(
            self.conversations,
            self.registry,
            self.locks,
            self.event_log,
            self.config_service,
            settings,
            self.llm_factory,
        )

    def _default_llm_factory(self, config: RuntimeConfig) -> LLMRunner:
        return build_llm_runner(config, timeout=self.settings.outbound_timeout_seconds)

    async def aclose(self) -> None:
        await self.http_client.aclose()

"""
Runtime configuration: persisted overrides merged over environment defaults.

The dashboard edits configuration through /api/settings; values saved there
win over the environment, and anything unset falls back to Settings.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

from app.config import Settings, get_settings
from app.constants.catalog import DEFAULT_PRODUCTS
from app.schemas.event_log import LogDirection
from app.schemas.settings import MASK_PREFIX, RuntimeConfig, RuntimeConfigUpdate
from app.services.event_log_service import EventLogService
from app.stores.base import KeyValueStore

SETTINGS_KEY = "settings"


class ConfigService:
    """get / update the effective RuntimeConfig."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
        event_log: Optional[EventLogService] = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._event_log = event_log
        self._update_lock = threading.Lock()

    def _defaults(self) -> dict[str, Any]:
        s = self._settings
        return {
            "verify_token": s.webhook_verify_token,
            "access_token": s.page_access_token,
            "whatsapp_phone_number_id": s.whatsapp_phone_number_id,
            "graph_api_version": s.graph_api_version,
            "ai_api_key": s.ai_api_key,
            "ai_api_base": s.ai_api_base,
            "ai_model": s.ai_model,
            "ai_instruction": None,
            "products": [p.model_dump() for p in DEFAULT_PRODUCTS],
        }

    def get(self) -> RuntimeConfig:
        """Effective config. Raises StorageError if the store is unavailable."""
        merged = self._defaults()
        stored = self._store.get(SETTINGS_KEY) or {}
        for key, value in stored.items():
            if key in merged and value not in (None, ""):
                merged[key] = value
        return RuntimeConfig.model_validate(merged)

    def update(self, patch: RuntimeConfigUpdate) -> RuntimeConfig:
        """Apply provided fields, persist, and return the new effective config."""
        changes = patch.model_dump(mode="json", exclude_none=True)
        for key, value in list(changes.items()):
            # The dashboard echoes masked secrets back unchanged
            if isinstance(value, str) and value.startswith(MASK_PREFIX):
                changes.pop(key)
        with self._update_lock:
            stored = dict(self._store.get(SETTINGS_KEY) or {})
            stored.update(changes)
            self._store.put(SETTINGS_KEY, stored)
        config = self.get()
        if self._event_log is not None:
            self._event_log.record(
                direction=LogDirection.SYSTEM,
                method="POST",
                path="/api/settings",
                status=200,
                outcome="Config Updated",
                payload=changes,
                secrets=config.secret_values(),
            )
        return config

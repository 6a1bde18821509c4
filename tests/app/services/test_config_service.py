"""Tests for ConfigService."""

from unittest.mock import MagicMock

import pytest

from app.config import DEFAULT_GRAPH_API_VERSION
from app.core.redaction import REDACTED
from app.schemas.settings import RuntimeConfigUpdate
from app.services.config_service import SETTINGS_KEY, ConfigService
from app.services.event_log_service import EventLogService
from app.stores import MemoryKeyValueStore, StorageError


@pytest.fixture
def event_log(store):
    return EventLogService(store)


@pytest.fixture
def config_service(store, settings, event_log):
    return ConfigService(store, settings, event_log)


def test_defaults_come_from_environment(config_service, settings):
    config = config_service.get()
    assert config.verify_token == settings.webhook_verify_token
    assert config.access_token == settings.page_access_token
    assert config.graph_api_version == DEFAULT_GRAPH_API_VERSION
    assert len(config.products) == 3


def test_stored_values_override_defaults(config_service, store):
    store.put(SETTINGS_KEY, {"verify_token": "from-dashboard", "ai_model": ""})
    config = config_service.get()
    assert config.verify_token == "from-dashboard"
    assert config.ai_model == "gemini-3-flash"


def test_update_applies_only_provided_fields(config_service):
    config = config_service.update(RuntimeConfigUpdate(ai_model="gpt-4o-mini"))
    assert config.ai_model == "gpt-4o-mini"
    assert config_service.get().ai_model == "gpt-4o-mini"
    assert config.access_token is not None


def test_update_ignores_masked_secrets(config_service, settings):
    masked = config_service.get().masked()["access_token"]
    config = config_service.update(
        RuntimeConfigUpdate(access_token=masked, verify_token="new-token")
    )
    assert config.access_token == settings.page_access_token
    assert config.verify_token == "new-token"


def test_update_logs_redacted_entry(config_service, event_log):
    config_service.update(RuntimeConfigUpdate(access_token="EAAnewsecret"))
    entry = event_log.list()[0]
    assert entry.outcome == "Config Updated"
    assert entry.payload["access_token"] == REDACTED


def test_masked_hides_secret_values(config_service, settings):
    masked = config_service.get().masked()
    assert masked["ai_api_key"] == "****" + settings.ai_api_key[-4:]
    assert settings.page_access_token not in str(masked)


def test_storage_failure_raises(settings):
    broken = MagicMock()
    broken.get.side_effect = StorageError("down")
    with pytest.raises(StorageError):
        ConfigService(broken, settings).get()

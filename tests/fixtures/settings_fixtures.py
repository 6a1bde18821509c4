"""Settings used by every app-level test."""

import pytest

from app.config import Settings

VERIFY_TOKEN = "verify-me-123"
ACCESS_TOKEN = "EAAGtesttoken9876"
AI_API_KEY = "kie-secret-5555"
PHONE_NUMBER_ID = "106540352242922"


@pytest.fixture
def settings():
    return Settings(
        webhook_verify_token=VERIFY_TOKEN,
        page_access_token=ACCESS_TOKEN,
        whatsapp_phone_number_id=PHONE_NUMBER_ID,
        ai_api_key=AI_API_KEY,
        graph_api_base_url="https://graph.test",
        storage_backend="memory",
    )

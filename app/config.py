import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings
from sqlalchemy.engine.url import make_url, URL

DEFAULT_DATABASE_URL = "sqlite:///./inbox_relay.db"
DEFAULT_TEST_DATABASE_URL = "sqlite://"

DEFAULT_GRAPH_API_BASE_URL = "https://graph.facebook.com"
DEFAULT_GRAPH_API_VERSION = "v24.0"
DEFAULT_AI_API_BASE = "https://api.kie.ai/gemini-3-flash/v1"

# Project root (parent of app/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "inbox-relay"
    database_url: Optional[str] = None  # Will be set dynamically
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Storage: "memory" keeps everything in process; "database" uses kv_entries
    storage_backend: str = Field(
        default="memory", json_schema_extra={"env": "STORAGE_BACKEND"}
    )

    # Meta webhooks / Graph API
    webhook_verify_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "WEBHOOK_VERIFY_TOKEN"}
    )
    page_access_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "PAGE_ACCESS_TOKEN"}
    )
    whatsapp_phone_number_id: Optional[str] = Field(
        default=None, json_schema_extra={"env": "WHATSAPP_PHONE_NUMBER_ID"}
    )
    graph_api_base_url: str = Field(
        default=DEFAULT_GRAPH_API_BASE_URL,
        json_schema_extra={"env": "GRAPH_API_BASE_URL"},
    )
    graph_api_version: str = Field(
        default=DEFAULT_GRAPH_API_VERSION,
        json_schema_extra={"env": "GRAPH_API_VERSION"},
    )

    # AI replies (OpenAI-compatible chat completions endpoint)
    ai_api_key: Optional[str] = Field(
        default=None, json_schema_extra={"env": "AI_API_KEY"}
    )
    ai_api_base: str = Field(
        default=DEFAULT_AI_API_BASE, json_schema_extra={"env": "AI_API_BASE"}
    )
    ai_model: str = Field(default="gemini-3-flash", json_schema_extra={"env": "AI_MODEL"})
    ai_context_window: int = Field(
        default=5, ge=1, json_schema_extra={"env": "AI_CONTEXT_WINDOW"}
    )
    ai_reply_max_chars: int = Field(
        default=300, ge=20, json_schema_extra={"env": "AI_REPLY_MAX_CHARS"}
    )

    outbound_timeout_seconds: float = Field(
        default=5.0, gt=0, json_schema_extra={"env": "OUTBOUND_TIMEOUT_SECONDS"}
    )
    event_log_capacity: int = Field(
        default=50, ge=1, json_schema_extra={"env": "EVENT_LOG_CAPACITY"}
    )
    dedup_window_size: int = Field(
        default=1000, ge=1, json_schema_extra={"env": "DEDUP_WINDOW_SIZE"}
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = values.get("environment", os.getenv("ENV", "development"))
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        else:
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def database_url_obj(self) -> URL:
        """Return the database URL as a URL object using sqlalchemy's make_url."""
        if not self.database_url:
            raise ValueError("Database URL is not set.")
        return make_url(self.database_url)

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()

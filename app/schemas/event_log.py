"""Diagnostic event log entries."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LogDirection(str, Enum):
    INBOUND_WEBHOOK = "inbound-webhook"
    OUTBOUND_API = "outbound-api"
    SYSTEM = "system"


class LogEntry(BaseModel):
    """One HTTP interaction. Immutable once created."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    direction: LogDirection
    method: str
    path: str
    status: int
    outcome: str
    source: str = "system"
    payload: Any = Field(default_factory=dict)

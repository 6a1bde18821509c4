"""Pydantic schemas for conversations and their messages."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.messaging import MessageKind, Platform


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Stored snake_case, served camelCase
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class MessageStatus(str, Enum):
    RECEIVED = "received"
    SENT = "sent"
    FAILED = "failed"


# -----------------------------------------------------------------------------
# Message
# -----------------------------------------------------------------------------


class Message(BaseModel):
    """One message in a conversation; insertion order is chronological order."""

    model_config = CAMEL_CONFIG

    id: str
    direction: MessageDirection
    text: str
    created_at: datetime = Field(default_factory=_utcnow)
    status: MessageStatus = MessageStatus.RECEIVED
    kind: MessageKind = MessageKind.TEXT
    is_human_override: bool = False
    attachments: list[dict[str, Any]] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Conversation
# -----------------------------------------------------------------------------


class ConversationSummary(BaseModel):
    """Entry in the threads index (no messages)."""

    model_config = CAMEL_CONFIG

    id: str
    platform: Platform
    external_user_id: str
    display_name: str
    avatar_url: str
    last_message_preview: str = ""
    last_message_at: Optional[datetime] = None
    unread_count: int = 0
    ai_paused: bool = False


class Conversation(BaseModel):
    """Message history for one (platform, external_user_id) pair."""

    model_config = CAMEL_CONFIG

    id: str
    platform: Platform
    external_user_id: str
    account_id: Optional[str] = None
    display_name: str
    avatar_url: str
    profile_resolved: bool = False
    messages: list[Message] = Field(default_factory=list)
    last_message_preview: str = ""
    last_message_at: Optional[datetime] = None
    unread_count: int = 0
    ai_paused: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    def has_message(self, message_id: str) -> bool:
        return any(m.id == message_id for m in self.messages)

    def summary(self) -> ConversationSummary:
        return ConversationSummary(
            id=self.id,
            platform=self.platform,
            external_user_id=self.external_user_id,
            display_name=self.display_name,
            avatar_url=self.avatar_url,
            last_message_preview=self.last_message_preview,
            last_message_at=self.last_message_at,
            unread_count=self.unread_count,
            ai_paused=self.ai_paused,
        )


# -----------------------------------------------------------------------------
# API bodies
# -----------------------------------------------------------------------------


class SendMessageRequest(BaseModel):
    """Body for a human-operator message."""

    text: str = Field(..., min_length=1)


class AnalyzeRequest(BaseModel):
    """Body for POST /api/ai/analyze (dashboard sends camelCase threadId)."""

    thread_id: str = Field(..., alias="threadId")

    model_config = ConfigDict(populate_by_name=True)

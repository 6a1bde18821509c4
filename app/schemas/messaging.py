"""
Normalized webhook contracts.

Every platform adapter converts its raw webhook envelope into these shapes;
the reconciler and dispatcher only ever see InboundEvent / OutboundSendResult.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Supported messaging platforms."""

    INSTAGRAM = "instagram"
    WHATSAPP = "whatsapp"


class MessageKind(str, Enum):
    TEXT = "text"
    ATTACHMENT = "attachment"
    MEDIA = "media"


class ProfileData(BaseModel):
    """Best-effort sender profile (Graph API profile or webhook contact block)."""

    name: Optional[str] = None
    username: Optional[str] = None
    profile_pic: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.username


class InboundEvent(BaseModel):
    """Normalized inbound message event (adapter → core)."""

    platform: Platform
    sender_id: str
    event_id: Optional[str] = None  # provider message id (mid / wamid)
    text: str = ""
    kind: MessageKind = MessageKind.TEXT
    attachments: list[dict[str, Any]] = Field(default_factory=list)
    timestamp: Optional[datetime] = None
    account_id: Optional[str] = None  # page / IG account / WhatsApp phone number id
    profile: Optional[ProfileData] = None  # present when the payload carries it


class OutboundSendResult(BaseModel):
    """Result of sending an outbound message (success + optional message_id)."""

    success: bool
    status_code: int = 0
    platform_message_id: Optional[str] = None
    error: Optional[str] = None

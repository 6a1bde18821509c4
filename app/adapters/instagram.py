"""
Instagram platform adapter.

Webhook envelope: {"object": "instagram" | "page", "entry": [{"id", "time",
"messaging": [...]}]}. Some subscriptions deliver the same event shape under
entry.changes[].value instead of entry.messaging.
"""

from __future__ import annotations

from typing import Any, Optional

from app.adapters.base import BasePlatformAdapter, timestamp_from_epoch
from app.schemas.messaging import (
    InboundEvent,
    MessageKind,
    OutboundSendResult,
    Platform,
    ProfileData,
)

PROFILE_FIELDS = "name,username,profile_pic"
ATTACHMENT_PLACEHOLDER = "[Attachment]"
MEDIA_PLACEHOLDER = "[Media]"


class InstagramAdapter(BasePlatformAdapter):
    """Instagram messaging: parse webhook events, send via /me/messages."""

    platform = Platform.INSTAGRAM
    supported_objects = ("instagram", "page")

    def parse_webhook(self, raw_payload: dict[str, Any]) -> list[InboundEvent]:
        if not self.accepts(raw_payload):
            return []
        events: list[InboundEvent] = []
        for entry in raw_payload.get("entry") or []:
            if not isinstance(entry, dict):
                continue
            raw_events = entry.get("messaging")
            if not raw_events:
                raw_events = [
                    change.get("value")
                    for change in entry.get("changes") or []
                    if isinstance(change, dict)
                ]
            for raw in raw_events or []:
                event = self._parse_event(raw, entry.get("id"))
                if event is not None:
                    events.append(event)
        return events

    def _parse_event(
        self, raw: Any, entry_account_id: Optional[str]
    ) -> Optional[InboundEvent]:
        if not isinstance(raw, dict):
            return None
        message = raw.get("message")
        # Only real messages: no read/delivery receipts, no echoes of our own sends
        if not isinstance(message, dict) or message.get("is_echo"):
            return None
        if raw.get("delivery") or raw.get("read"):
            return None
        sender_id = (raw.get("sender") or {}).get("id")
        if not sender_id:
            return None

        attachments = [a for a in message.get("attachments") or [] if isinstance(a, dict)]
        text = message.get("text")
        if text:
            kind = MessageKind.TEXT
        elif attachments:
            text, kind = ATTACHMENT_PLACEHOLDER, MessageKind.ATTACHMENT
        else:
            text, kind = MEDIA_PLACEHOLDER, MessageKind.MEDIA

        recipient_id = (raw.get("recipient") or {}).get("id")
        return InboundEvent(
            platform=self.platform,
            sender_id=str(sender_id),
            event_id=message.get("mid"),
            text=text,
            kind=kind,
            attachments=attachments,
            timestamp=timestamp_from_epoch(raw.get("timestamp"), millis=True),
            account_id=str(recipient_id or entry_account_id or "") or None,
        )

    async def fetch_profile(self, user_id: str) -> Optional[ProfileData]:
        response = await self._graph.request(
            "GET",
            user_id,
            params={"fields": PROFILE_FIELDS},
            source=self.platform.value,
            outcome="Profile Fetch",
        )
        if not response.ok:
            return None
        return ProfileData(
            name=response.data.get("name"),
            username=response.data.get("username"),
            profile_pic=response.data.get("profile_pic"),
        )

    async def send_text(
        self, recipient_id: str, text: str, account_id: Optional[str] = None
    ) -> OutboundSendResult:
        response = await self._graph.request(
            "POST",
            "me/messages",
            json={"recipient": {"id": recipient_id}, "message": {"text": text}},
            source=self.platform.value,
            outcome="Send Message",
        )
        if not response.ok:
            error = (response.data.get("error") or {}).get("message")
            return OutboundSendResult(
                success=False, status_code=response.status_code, error=error
            )
        return OutboundSendResult(
            success=True,
            status_code=response.status_code,
            platform_message_id=response.data.get("message_id"),
        )

    async def send_typing(
        self,
        recipient_id: str,
        reply_to: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> bool:
        response = await self._graph.request(
            "POST",
            "me/messages",
            json={"recipient": {"id": recipient_id}, "sender_action": "typing_on"},
            source=self.platform.value,
            outcome="Typing Indicator",
        )
        return response.ok

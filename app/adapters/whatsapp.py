"""
WhatsApp Cloud API adapter.

Webhook envelope: {"object": "whatsapp_business_account", "entry": [{"changes":
[{"field": "messages", "value": {"metadata": {...}, "contacts": [...],
"messages": [...] | "statuses": [...]}}]}]}. Status updates are ignored.
"""

from __future__ import annotations

from typing import Any, Optional

from app.adapters.base import BasePlatformAdapter, timestamp_from_epoch
from app.clients.graph_api import MissingCredentialError
from app.schemas.messaging import (
    InboundEvent,
    MessageKind,
    OutboundSendResult,
    Platform,
    ProfileData,
)

MEDIA_TYPES = ("image", "video", "audio", "document", "sticker")


def _extract_text(msg: dict[str, Any]) -> tuple[str, MessageKind]:
    msg_type = msg.get("type", "text")
    if msg_type == "text":
        body = (msg.get("text") or {}).get("body")
        if body:
            return body, MessageKind.TEXT
    if msg_type == "interactive":
        interactive = msg.get("interactive") or {}
        reply = interactive.get("button_reply") or interactive.get("list_reply") or {}
        if reply.get("title"):
            return reply["title"], MessageKind.TEXT
    if msg_type == "button":
        text = (msg.get("button") or {}).get("text")
        if text:
            return text, MessageKind.TEXT
    if msg_type in MEDIA_TYPES:
        caption = (msg.get(msg_type) or {}).get("caption")
        return caption or "[Attachment]", MessageKind.ATTACHMENT
    return "[Media]", MessageKind.MEDIA


class WhatsAppAdapter(BasePlatformAdapter):
    """WhatsApp Cloud API: parse change notifications, send via /{phone_number_id}/messages."""

    platform = Platform.WHATSAPP
    supported_objects = ("whatsapp_business_account",)

    def parse_webhook(self, raw_payload: dict[str, Any]) -> list[InboundEvent]:
        if not self.accepts(raw_payload):
            return []
        events: list[InboundEvent] = []
        for entry in raw_payload.get("entry") or []:
            if not isinstance(entry, dict):
                continue
            for change in entry.get("changes") or []:
                if not isinstance(change, dict):
                    continue
                if change.get("field", "messages") != "messages":
                    continue
                events.extend(self._parse_value(change.get("value") or {}))
        return events

    def _parse_value(self, value: dict[str, Any]) -> list[InboundEvent]:
        phone_number_id = (value.get("metadata") or {}).get("phone_number_id")
        names = {
            c.get("wa_id"): (c.get("profile") or {}).get("name")
            for c in value.get("contacts") or []
            if isinstance(c, dict)
        }
        events: list[InboundEvent] = []
        for msg in value.get("messages") or []:
            if not isinstance(msg, dict) or not msg.get("from"):
                continue
            sender_id = str(msg["from"])
            text, kind = _extract_text(msg)
            msg_type = msg.get("type", "text")
            attachments = (
                [{"type": msg_type, "payload": msg.get(msg_type) or {}}]
                if kind == MessageKind.ATTACHMENT
                else []
            )
            name = names.get(sender_id)
            events.append(
                InboundEvent(
                    platform=self.platform,
                    sender_id=sender_id,
                    event_id=msg.get("id"),
                    text=text,
                    kind=kind,
                    attachments=attachments,
                    timestamp=timestamp_from_epoch(msg.get("timestamp"), millis=False),
                    account_id=phone_number_id,
                    profile=ProfileData(name=name) if name else None,
                )
            )
        return events

    async def fetch_profile(self, user_id: str) -> Optional[ProfileData]:
        # WhatsApp exposes no profile lookup; names arrive in the webhook contacts block
        return None

    async def _phone_number_id(
        self, account_id: Optional[str], outcome: str, payload: dict[str, Any]
    ) -> str:
        """
        Resolve the sending phone number id. A missing id is written to the
        event log as a skipped call before MissingCredentialError is raised.
        """
        if account_id:
            return account_id
        phone_number_id = (await self._graph.current_config()).whatsapp_phone_number_id
        if not phone_number_id:
            await self._graph.record_skipped(
                "POST",
                "{phone_number_id}/messages",
                source=self.platform.value,
                outcome=outcome,
                payload=payload,
            )
            raise MissingCredentialError("WhatsApp phone number id is not configured")
        return phone_number_id

    async def send_text(
        self, recipient_id: str, text: str, account_id: Optional[str] = None
    ) -> OutboundSendResult:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": recipient_id,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }
        phone_number_id = await self._phone_number_id(
            account_id, "Missing Phone Number Id", payload
        )
        response = await self._graph.request(
            "POST",
            f"{phone_number_id}/messages",
            json=payload,
            source=self.platform.value,
            outcome="Send Message",
            bearer_auth=True,
        )
        if not response.ok:
            error = (response.data.get("error") or {}).get("message")
            return OutboundSendResult(
                success=False, status_code=response.status_code, error=error
            )
        messages = response.data.get("messages") or [{}]
        return OutboundSendResult(
            success=True,
            status_code=response.status_code,
            platform_message_id=messages[0].get("id"),
        )

    async def send_typing(
        self,
        recipient_id: str,
        reply_to: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> bool:
        # The typing indicator rides on the read receipt of the message being answered
        if not reply_to:
            return False
        payload = {
            "messaging_product": "whatsapp",
            "status": "read",
            "message_id": reply_to,
            "typing_indicator": {"type": "text"},
        }
        phone_number_id = await self._phone_number_id(
            account_id, "Typing Indicator Skipped", payload
        )
        response = await self._graph.request(
            "POST",
            f"{phone_number_id}/messages",
            json=payload,
            source=self.platform.value,
            outcome="Typing Indicator",
            bearer_auth=True,
        )
        return response.ok

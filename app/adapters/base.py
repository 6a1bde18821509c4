"""
Platform adapter interface.

Adapters encapsulate platform-specific logic (webhook envelope parsing and
Graph API request shapes) and expose normalized events to the core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from app.clients.graph_api import GraphApiClient
from app.schemas.messaging import (
    InboundEvent,
    OutboundSendResult,
    Platform,
    ProfileData,
)

SUBSCRIBE_MODE = "subscribe"


def timestamp_from_epoch(value: Any, millis: bool) -> Optional[datetime]:
    """Provider epoch timestamp (int or numeric string) to aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if millis:
        seconds /= 1000.0
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class BasePlatformAdapter(ABC):
    """Contract for platform adapters. New platforms implement this interface."""

    platform: Platform
    supported_objects: tuple[str, ...] = ()

    def __init__(self, graph: GraphApiClient) -> None:
        self._graph = graph

    def verify_webhook(
        self, query_params: Mapping[str, Any], expected_token: Optional[str]
    ) -> bool:
        """
        Subscription handshake: valid iff hub.mode == "subscribe" and
        hub.verify_token equals the configured token (exact, case-sensitive).
        An unconfigured token never verifies.
        """
        if not expected_token:
            return False
        return (
            query_params.get("hub.mode") == SUBSCRIBE_MODE
            and query_params.get("hub.verify_token") == expected_token
        )

    def accepts(self, payload: Mapping[str, Any]) -> bool:
        return payload.get("object") in self.supported_objects

    @abstractmethod
    def parse_webhook(self, raw_payload: dict[str, Any]) -> list[InboundEvent]:
        """Extract message events from a webhook envelope, in payload order.

        Echoes, receipts and events without a sender are dropped here.
        """
        ...

    @abstractmethod
    async def fetch_profile(self, user_id: str) -> Optional[ProfileData]:
        """Look up sender profile. None when the platform has none or the call failed."""
        ...

    @abstractmethod
    async def send_text(
        self, recipient_id: str, text: str, account_id: Optional[str] = None
    ) -> OutboundSendResult:
        """Send a text message via the platform API."""
        ...

    @abstractmethod
    async def send_typing(
        self,
        recipient_id: str,
        reply_to: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> bool:
        """Best-effort typing indicator. Return True if the provider accepted it."""
        ...

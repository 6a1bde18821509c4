"""
Command to ingest Meta webhook deliveries.

Parses the raw body, logs receipt, normalizes the envelope through the
platform adapter, drops events already seen, and schedules processing after
the acknowledgment. Only an unparseable body produces a non-200 answer.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from fastapi import BackgroundTasks, HTTPException

from app.adapters.base import BasePlatformAdapter
from app.commands.base_platform import BasePlatformCommand
from app.schemas.messaging import InboundEvent
from app.schemas.event_log import LogDirection
from app.stores.base import StorageError

logger = logging.getLogger(__name__)

RAW_BODY_LOG_LIMIT = 2000


class IngestWebhookCommand(BasePlatformCommand):
    """
    Acknowledge a webhook delivery and queue its events.

    Events are processed oldest-first, one after another, in a background
    task; a failure on one event is logged and does not stop the rest.
    """

    async def execute(
        self, platform: str, raw_body: bytes, background_tasks: BackgroundTasks
    ) -> dict[str, str]:
        """
        Returns:
            dict: {"status": "ok"} once the body parsed as JSON.

        Raises:
            HTTPException: 404 for an unknown platform, 500 for a malformed body.
        """
        adapter = self.get_adapter(platform)
        config = await asyncio.to_thread(self.state.config_service.get)
        path = f"/webhook/{platform}"
        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            logger.warning("Malformed webhook body on %s: %s", path, e)
            await asyncio.to_thread(
                self.state.event_log.record,
                direction=LogDirection.INBOUND_WEBHOOK,
                method="POST",
                path=path,
                status=500,
                outcome="Malformed Payload",
                source=platform,
                payload={"raw": raw_body[:RAW_BODY_LOG_LIMIT].decode("utf-8", "replace")},
                secrets=config.secret_values(),
            )
            raise HTTPException(status_code=500, detail="Malformed webhook body") from e

        await asyncio.to_thread(
            self.state.event_log.record,
            direction=LogDirection.INBOUND_WEBHOOK,
            method="POST",
            path=path,
            status=200,
            outcome="Event Received",
            source=platform,
            payload=payload,
            secrets=config.secret_values(),
        )

        events = self._parse(adapter, payload)
        fresh = self._drop_seen(events)
        if fresh:
            background_tasks.add_task(self.process_events, fresh)
        logger.info(
            "Webhook %s: %d event(s), %d new", platform, len(events), len(fresh)
        )
        return {"status": "ok"}

    def _parse(self, adapter: BasePlatformAdapter, payload: Any) -> list[InboundEvent]:
        if not isinstance(payload, dict):
            return []
        # Deliveries can land on the other platform's path; route by envelope object
        target: Optional[BasePlatformAdapter] = adapter
        if not adapter.accepts(payload):
            target = next(
                (a for a in self.state.registry.list_adapters() if a.accepts(payload)),
                None,
            )
        if target is None:
            logger.info("Ignoring webhook object %r", payload.get("object"))
            return []
        try:
            return target.parse_webhook(payload)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Webhook parse error: %s", e)
            return []

    def _drop_seen(self, events: list[InboundEvent]) -> list[InboundEvent]:
        """
        Remove events already stored; keep oldest-first order.

        Ids enter the window only once their message is persisted, so a
        delivery whose processing failed is accepted again on redelivery.
        """
        fresh = [
            event
            for event in events
            if event.event_id is None or event.event_id not in self.state.seen_events
        ]
        if all(event.timestamp is not None for event in fresh):
            fresh.sort(key=lambda event: event.timestamp)
        return fresh

    async def process_events(self, events: list[InboundEvent]) -> None:
        for event in events:
            try:
                await self.process_event(event)
            except Exception as e:
                logger.exception(
                    "Processing %s event %s failed", event.platform.value, event.event_id
                )
                await self._record_failure(event, e)

    async def process_event(self, event: InboundEvent) -> None:
        """Reconcile one event into its conversation and reply if it was new."""
        result = await self.state.reconciler.reconcile(event)
        if event.event_id is not None:
            self.state.seen_events.check_and_add(event.event_id)
        if result.appended:
            await self.state.dispatcher.dispatch_ai_reply(result.conversation.id)

    async def _record_failure(self, event: InboundEvent, error: Exception) -> None:
        try:
            config = await asyncio.to_thread(self.state.config_service.get)
            await asyncio.to_thread(
                self.state.event_log.record,
                direction=LogDirection.SYSTEM,
                method="POST",
                path=f"/webhook/{event.platform.value}",
                status=500,
                outcome="Processing Failed",
                source=event.platform.value,
                payload={"event_id": event.event_id, "error": str(error)},
                secrets=config.secret_values(),
            )
        except StorageError as e:
            logger.error("Could not record processing failure: %s", e)

"""
Command to answer a webhook subscription handshake.

Meta calls GET /webhook/{platform}?hub.mode=subscribe&hub.verify_token=...&hub.challenge=...
and expects the challenge echoed back as plain text.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from fastapi import HTTPException
from fastapi.responses import PlainTextResponse

from app.commands.base_platform import BasePlatformCommand
from app.schemas.event_log import LogDirection

logger = logging.getLogger(__name__)


class VerifyWebhookCommand(BasePlatformCommand):
    """
    Echo hub.challenge iff hub.mode == "subscribe" and hub.verify_token matches
    the configured verify token. Every attempt is written to the event log.
    """

    def execute(self, platform: str, query_params: Mapping[str, Any]) -> PlainTextResponse:
        """
        Raises:
            HTTPException: 404 for an unknown platform, 400 when hub.mode or
                hub.verify_token is missing, 403 when they do not match.
        """
        adapter = self.get_adapter(platform)
        mode = query_params.get("hub.mode")
        token = query_params.get("hub.verify_token")
        challenge = query_params.get("hub.challenge") or ""
        received = {"mode": mode, "token": token, "challenge": challenge}

        if not mode or not token:
            self._record(platform, 400, "Missing Parameters", received)
            raise HTTPException(status_code=400, detail="Missing verification parameters")

        config = self.state.config_service.get()
        if adapter.verify_webhook(query_params, config.verify_token):
            self._record(platform, 200, "Verification Success", received)
            return PlainTextResponse(challenge, status_code=200)

        logger.warning("Webhook verification failed for %s (mode=%s)", platform, mode)
        self._record(platform, 403, "Verification Failed", received)
        raise HTTPException(status_code=403, detail="Verification failed")

    def _record(self, platform: str, status: int, outcome: str, payload: dict) -> None:
        config = self.state.config_service.get()
        self.state.event_log.record(
            direction=LogDirection.INBOUND_WEBHOOK,
            method="GET",
            path=f"/webhook/{platform}",
            status=status,
            outcome=outcome,
            source=platform,
            payload=payload,
            secrets=config.secret_values(),
        )

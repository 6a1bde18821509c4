"""
Meta Graph API client shared by the Instagram and WhatsApp adapters.

Every call made through request() produces exactly one event-log entry with
tokens stripped from the URL and secrets redacted from the payload.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from app.schemas.event_log import LogDirection
from app.schemas.settings import RuntimeConfig
from app.services.config_service import ConfigService
from app.services.event_log_service import EventLogService

logger = logging.getLogger(__name__)


class MissingCredentialError(RuntimeError):
    """No access token (or phone number id) is configured for the call."""


class GraphApiError(RuntimeError):
    """The Graph API could not be reached."""


@dataclass
class GraphResponse:
    status_code: int
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class GraphApiClient:
    """Thin async wrapper over httpx that logs every interaction."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config_service: ConfigService,
        event_log: EventLogService,
        base_url: str = "https://graph.facebook.com",
    ) -> None:
        self._http = http_client
        self._config_service = config_service
        self._event_log = event_log
        self._base_url = base_url.rstrip("/")

    async def current_config(self) -> RuntimeConfig:
        return await asyncio.to_thread(self._config_service.get)

    def _url(self, config: RuntimeConfig, path: str) -> str:
        return f"{self._base_url}/{config.graph_api_version}/{path.lstrip('/')}"

    async def record_skipped(
        self,
        method: str,
        path: str,
        *,
        source: str,
        outcome: str,
        payload: Any = None,
    ) -> None:
        """Log a call that was not attempted (missing credential)."""
        config = await self.current_config()
        await asyncio.to_thread(
            self._event_log.record,
            direction=LogDirection.OUTBOUND_API,
            method=method,
            path=self._url(config, path),
            status=400,
            outcome=outcome,
            source=source,
            payload=payload,
            secrets=config.secret_values(),
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        source: str,
        outcome: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
        bearer_auth: bool = False,
    ) -> GraphResponse:
        """
        Call the Graph API.

        Raises:
            MissingCredentialError: no access token configured (logged).
            GraphApiError: network failure or timeout (logged with status 0).
        """
        config = await self.current_config()
        if not config.access_token:
            await self.record_skipped(
                method, path, source=source, outcome="Missing Access Token", payload=json
            )
            raise MissingCredentialError("Graph API access token is not configured")

        url = self._url(config, path)
        query = dict(params or {})
        headers: dict[str, str] = {}
        if bearer_auth:
            headers["Authorization"] = f"Bearer {config.access_token}"
        else:
            query["access_token"] = config.access_token
        secrets = config.secret_values()
        logged_url = str(httpx.URL(url, params=query))

        try:
            response = await self._http.request(
                method, url, params=query, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            await asyncio.to_thread(
                self._event_log.record,
                direction=LogDirection.OUTBOUND_API,
                method=method,
                path=logged_url,
                status=0,
                outcome=f"{outcome} Failed",
                source=source,
                payload={"request": json or {}, "error": str(e) or type(e).__name__},
                secrets=secrets,
            )
            raise GraphApiError(f"{method} {path} failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}
        if not isinstance(data, dict):
            data = {"data": data}

        result = GraphResponse(status_code=response.status_code, data=data)
        await asyncio.to_thread(
            self._event_log.record,
            direction=LogDirection.OUTBOUND_API,
            method=method,
            path=logged_url,
            status=response.status_code,
            outcome=outcome if result.ok else f"{outcome} Failed",
            source=source,
            payload={"request": json or {}, "response": data},
            secrets=secrets,
        )
        return result

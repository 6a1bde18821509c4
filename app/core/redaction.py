"""Scrub credentials out of payloads before they reach the event log."""

from __future__ import annotations

import re
from typing import Any, Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "[REDACTED]"

_SENSITIVE_KEY = re.compile(
    r"(token|secret|password|api[_-]?key|apikey|authorization)", re.IGNORECASE
)


def is_sensitive_key(key: str) -> bool:
    return bool(_SENSITIVE_KEY.search(key))


def redact_url(url: str) -> str:
    """Replace sensitive query-string values in a URL."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (k, REDACTED if is_sensitive_key(k) else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="[]")))


def _scrub_string(value: str, secrets: list[str]) -> str:
    for secret in secrets:
        if secret in value:
            value = value.replace(secret, REDACTED)
    return value


def redact(payload: Any, secrets: Iterable[str] = ()) -> Any:
    """
    Return a copy of payload with sensitive keys masked and every known
    secret value replaced wherever it appears in a string.
    """
    known = sorted({s for s in secrets if s}, key=len, reverse=True)

    def _walk(value: Any) -> Any:
        if isinstance(value, dict):
            return {
                k: (REDACTED if isinstance(k, str) and is_sensitive_key(k) else _walk(v))
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [_walk(v) for v in value]
        if isinstance(value, str):
            return _scrub_string(value, known)
        return value

    return _walk(payload)

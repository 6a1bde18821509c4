"""
Base command for platform-scoped operations.

Provides a shared way to resolve the adapter for a /webhook/{platform} path
across the verification and ingestion commands.
"""

from __future__ import annotations

from fastapi import HTTPException

from app.adapters.base import BasePlatformAdapter
from app.core.app_state import AppState
from app.schemas.messaging import Platform


class BasePlatformCommand:
    """
    Base for platform webhook commands.
    Resolves the registered adapter for a platform path segment.
    """

    def __init__(self, state: AppState) -> None:
        self.state = state

    def get_adapter(self, platform: str) -> BasePlatformAdapter:
        """Return the adapter for platform, or raise 404 for unknown platforms."""
        try:
            adapter = self.state.registry.get(Platform(platform))
        except ValueError:
            adapter = None
        if adapter is None:
            raise HTTPException(status_code=404, detail=f"Unknown platform: {platform}")
        return adapter

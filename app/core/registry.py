from __future__ import annotations

from typing import Dict

from app.adapters.base import BasePlatformAdapter
from app.schemas.messaging import Platform


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: Dict[Platform, BasePlatformAdapter] = {}

    def register(self, adapter: BasePlatformAdapter) -> None:
        if adapter.platform in self._adapters:
            raise ValueError(f"Adapter already registered: {adapter.platform.value}")
        self._adapters[adapter.platform] = adapter

    def get(self, platform: Platform) -> BasePlatformAdapter | None:
        return self._adapters.get(platform)

    def list_adapters(self) -> list[BasePlatformAdapter]:
        return list(self._adapters.values())

from __future__ import annotations

import copy
from typing import Any, Optional

from app.stores.base import KeyValueStore

_MISSING = object()


class MemoryKeyValueStore(KeyValueStore):
    """Process-memory store; contents are lost on restart.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key, _MISSING)
        if value is _MISSING:
            return None
        return copy.deepcopy(value)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, _MISSING) is not _MISSING

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

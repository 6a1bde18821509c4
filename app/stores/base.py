"""
Key-value store interface.

The conversation store, event log and runtime settings all sit on top of
this: values are JSON-compatible documents, there are no transactions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class StorageError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


class KeyValueStore(ABC):
    """Contract for storage backends. Implementations must be safe to share per process."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None when the key is absent."""
        ...

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Create or replace the value for key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Return True if it existed."""
        ...

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]:
        """Return all keys starting with prefix, sorted."""
        ...

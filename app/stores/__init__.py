"""Key-value storage backends."""

from app.stores.base import KeyValueStore, StorageError
from app.stores.memory import MemoryKeyValueStore
from app.stores.sql import SqlKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqlKeyValueStore",
    "StorageError",
]

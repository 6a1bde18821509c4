"""
SQL-backed key-value store (kv_entries table).

Each operation opens its own short session; SQLAlchemy errors surface as
StorageError.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.db import db_session
from app.models.kv_entry import KeyValueEntry
from app.stores.base import KeyValueStore, StorageError


class SqlKeyValueStore(KeyValueStore):
    """Durable store on top of any SQLAlchemy engine."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[Any]:
        try:
            with db_session(self._session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read key {key!r}") from e

    def put(self, key: str, value: Any) -> None:
        try:
            with db_session(self._session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    db.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write key {key!r}") from e

    def delete(self, key: str) -> bool:
        try:
            with db_session(self._session_factory) as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    return False
                db.delete(entry)
                db.commit()
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete key {key!r}") from e

    def list_keys(self, prefix: str = "") -> list[str]:
        try:
            with db_session(self._session_factory) as db:
                q = db.query(KeyValueEntry.key)
                if prefix:
                    q = q.filter(KeyValueEntry.key.startswith(prefix, autoescape=True))
                return [row[0] for row in q.order_by(KeyValueEntry.key.asc()).all()]
        except SQLAlchemyError as e:
            raise StorageError("Failed to list keys") from e

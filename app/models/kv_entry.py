"""
KeyValueEntry model backing the durable store.

One row per key (`settings`, `logs`, `threads_index`, `thread:{id}`); the
value is the JSON document for that key.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, String

from app.db import Base
from app.models.mixins import TimestampMixin


class KeyValueEntry(Base, TimestampMixin):
    """A single JSON document addressed by key."""

    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)

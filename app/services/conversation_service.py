"""
Conversation store on top of the key-value backend.

Each conversation is stored under `thread:{id}`; `threads_index` holds the
summaries ordered most-recently-active-first. Callers that read-modify-write
a conversation must hold the conversation's KeyedLock; the index itself is
guarded by a threading lock shared by save and delete.
"""

from __future__ import annotations

import threading
from typing import List, Optional

from app.core.conversation_key import build_conversation_id
from app.schemas.messaging import Platform
from app.schemas.conversation import (
    Conversation,
    ConversationSummary,
    Message,
    MessageDirection,
)
from app.stores.base import KeyValueStore

THREAD_KEY_PREFIX = "thread:"
THREADS_INDEX_KEY = "threads_index"
PREVIEW_MAX_CHARS = 120


def thread_key(conversation_id: str) -> str:
    return f"{THREAD_KEY_PREFIX}{conversation_id}"


class ConversationService:
    """Read and write conversations; keeps the index in recency order."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._index_lock = threading.Lock()

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        raw = self._store.get(thread_key(conversation_id))
        return Conversation.model_validate(raw) if raw is not None else None

    def find_by_sender(
        self, platform: Platform, external_user_id: str
    ) -> Optional[Conversation]:
        return self.get_conversation(build_conversation_id(platform, external_user_id))

    def save(self, conversation: Conversation, move_to_front: bool = True) -> None:
        """Persist the conversation and refresh its index entry."""
        summary = conversation.summary().model_dump(mode="json")
        with self._index_lock:
            self._store.put(
                thread_key(conversation.id), conversation.model_dump(mode="json")
            )
            index = self._store.get(THREADS_INDEX_KEY) or []
            position = next(
                (i for i, item in enumerate(index) if item.get("id") == conversation.id),
                0,
            )
            index = [item for item in index if item.get("id") != conversation.id]
            index.insert(0 if move_to_front else min(position, len(index)), summary)
            self._store.put(THREADS_INDEX_KEY, index)

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._index_lock:
            existed = self._store.delete(thread_key(conversation_id))
            index = self._store.get(THREADS_INDEX_KEY) or []
            remaining = [item for item in index if item.get("id") != conversation_id]
            if len(remaining) != len(index):
                self._store.put(THREADS_INDEX_KEY, remaining)
        return existed

    def get_summaries(self) -> List[ConversationSummary]:
        """Index entries, most recently active first."""
        return [
            ConversationSummary.model_validate(item)
            for item in self._store.get(THREADS_INDEX_KEY) or []
        ]

    def get_conversations(self) -> List[Conversation]:
        """Full conversations in index order."""
        result: List[Conversation] = []
        for summary in self.get_summaries():
            conversation = self.get_conversation(summary.id)
            if conversation is not None:
                result.append(conversation)
        return result

    def count(self) -> int:
        return len(self._store.get(THREADS_INDEX_KEY) or [])

    @staticmethod
    def append_message(conversation: Conversation, message: Message) -> bool:
        """
        Append message in place. Returns False (and changes nothing) when a
        message with the same id is already present.

        created_at is clamped so it never goes backwards within the thread.
        """
        if conversation.has_message(message.id):
            return False
        if conversation.messages:
            last_at = conversation.messages[-1].created_at
            if message.created_at < last_at:
                message = message.model_copy(update={"created_at": last_at})
        conversation.messages.append(message)
        conversation.last_message_preview = message.text[:PREVIEW_MAX_CHARS]
        conversation.last_message_at = message.created_at
        if message.direction == MessageDirection.INCOMING:
            conversation.unread_count += 1
        return True

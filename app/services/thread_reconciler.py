"""
Find-or-create the conversation for an inbound event and append the message.

All reads and writes for one sender happen under that sender's KeyedLock, so
concurrent deliveries can neither create two conversations nor interleave
appends out of arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from app.adapters.base import BasePlatformAdapter
from app.core.conversation_key import build_conversation_id, build_conversation_key
from app.core.keyed_lock import KeyedLock
from app.core.registry import AdapterRegistry
from app.schemas.messaging import InboundEvent, ProfileData
from app.schemas.conversation import (
    Conversation,
    Message,
    MessageDirection,
    MessageStatus,
)
from app.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

AVATAR_PLACEHOLDER_URL = "https://ui-avatars.com/api/?name=User+{suffix}&background=random"


def placeholder_name(external_user_id: str) -> str:
    return f"User {external_user_id[-4:]}"


def placeholder_avatar(external_user_id: str) -> str:
    return AVATAR_PLACEHOLDER_URL.format(suffix=external_user_id[-4:])


@dataclass
class ReconcileResult:
    conversation: Conversation
    message: Message
    created: bool
    appended: bool


class ThreadReconciler:
    """Attach inbound events to conversations."""

    def __init__(
        self,
        conversations: ConversationService,
        registry: AdapterRegistry,
        locks: KeyedLock,
    ) -> None:
        self._conversations = conversations
        self._registry = registry
        self._locks = locks

    async def reconcile(self, event: InboundEvent) -> ReconcileResult:
        adapter = self._registry.get(event.platform)
        key = build_conversation_key(event.platform, event.sender_id)
        async with self._locks.hold(key):
            conversation = await asyncio.to_thread(
                self._conversations.find_by_sender, event.platform, event.sender_id
            )
            created = conversation is None
            if conversation is None:
                profile = event.profile or await self._fetch_profile(adapter, event)
                conversation = self._new_conversation(event, profile)
                changed = True
            else:
                changed = await self._refresh_profile(conversation, event, adapter)

            if event.account_id and conversation.account_id != event.account_id:
                conversation.account_id = event.account_id
                changed = True

            message = Message(
                id=event.event_id or f"m_{uuid4().hex}",
                direction=MessageDirection.INCOMING,
                text=event.text,
                created_at=event.timestamp or datetime.now(timezone.utc),
                status=MessageStatus.RECEIVED,
                kind=event.kind,
                attachments=event.attachments,
            )
            appended = self._conversations.append_message(conversation, message)
            if appended or changed:
                # Duplicates don't count as activity; only new messages reorder
                await asyncio.to_thread(
                    self._conversations.save,
                    conversation,
                    move_to_front=appended or created,
                )

        if appended:
            logger.info(
                "Appended %s to conversation %s (%s:%s)",
                message.id,
                conversation.id,
                event.platform.value,
                event.sender_id,
            )
        else:
            logger.info("Duplicate message %s ignored", message.id)
        return ReconcileResult(
            conversation=conversation,
            message=message,
            created=created,
            appended=appended,
        )

    async def _fetch_profile(
        self, adapter: Optional[BasePlatformAdapter], event: InboundEvent
    ) -> Optional[ProfileData]:
        """Profile lookup failures are non-fatal; the adapter already logged the call."""
        if adapter is None:
            return None
        try:
            return await adapter.fetch_profile(event.sender_id)
        except Exception as e:
            logger.warning("Profile fetch for %s failed: %s", event.sender_id, e)
            return None

    def _new_conversation(
        self, event: InboundEvent, profile: Optional[ProfileData]
    ) -> Conversation:
        resolved = profile is not None and bool(profile.display_name)
        return Conversation(
            id=build_conversation_id(event.platform, event.sender_id),
            platform=event.platform,
            external_user_id=event.sender_id,
            account_id=event.account_id,
            display_name=(
                profile.display_name if resolved else placeholder_name(event.sender_id)
            ),
            avatar_url=(
                (profile.profile_pic if profile else None)
                or placeholder_avatar(event.sender_id)
            ),
            profile_resolved=resolved,
        )

    async def _refresh_profile(
        self,
        conversation: Conversation,
        event: InboundEvent,
        adapter: Optional[BasePlatformAdapter],
    ) -> bool:
        """
        Update name/avatar from fresh profile data. The webhook's own contact
        block is always applied; the Graph API is only asked again while the
        profile is still a placeholder.
        """
        profile = event.profile
        if profile is None and not conversation.profile_resolved:
            profile = await self._fetch_profile(adapter, event)
        if profile is None or not profile.display_name:
            return False
        changed = False
        if conversation.display_name != profile.display_name:
            conversation.display_name = profile.display_name
            changed = True
        if profile.profile_pic and conversation.avatar_url != profile.profile_pic:
            conversation.avatar_url = profile.profile_pic
            changed = True
        if not conversation.profile_resolved:
            conversation.profile_resolved = True
            changed = True
        return changed

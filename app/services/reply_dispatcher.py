"""
Outbound replies: automatic AI replies and human-operator messages.

Both paths relay through the platform adapter and record the result as an
outgoing message. A send the provider rejects is still recorded, with
status "failed".
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence
from uuid import uuid4

from app.adapters.base import BasePlatformAdapter
from app.config import Settings
from app.constants.default_system_prompt import FALLBACK_REPLY
from app.core.conversation_key import build_conversation_key
from app.core.keyed_lock import KeyedLock
from app.core.registry import AdapterRegistry
from app.schemas.messaging import OutboundSendResult
from app.schemas.conversation import (
    Conversation,
    Message,
    MessageDirection,
    MessageStatus,
)
from app.schemas.event_log import LogDirection
from app.schemas.settings import RuntimeConfig
from app.services.config_service import ConfigService
from app.services.conversation_service import ConversationService
from app.services.event_log_service import EventLogService
from app.workers.llm import LLMRunner, build_system_prompt, role_for

logger = logging.getLogger(__name__)

LLMFactory = Callable[[RuntimeConfig], LLMRunner]


class ConversationNotFoundError(LookupError):
    pass


class ReplyDispatcher:
    """Generate and relay replies for conversations."""

    def __init__(
        self,
        conversations: ConversationService,
        registry: AdapterRegistry,
        locks: KeyedLock,
        event_log: EventLogService,
        config_service: ConfigService,
        settings: Settings,
        llm_factory: LLMFactory,
    ) -> None:
        self._conversations = conversations
        self._registry = registry
        self._locks = locks
        self._event_log = event_log
        self._config_service = config_service
        self._settings = settings
        self._llm_factory = llm_factory

    # ------------------------------------------------------------------
    # Automatic replies
    # ------------------------------------------------------------------

    async def dispatch_ai_reply(self, conversation_id: str) -> Optional[Message]:
        """
        Reply to the latest incoming message unless the conversation is
        paused or no AI key is configured. Returns the recorded reply.
        """
        conversation = await self._load(conversation_id)
        if conversation is None or conversation.ai_paused:
            return None
        config = await asyncio.to_thread(self._config_service.get)
        if not config.ai_api_key:
            await asyncio.to_thread(
                self._event_log.record,
                direction=LogDirection.SYSTEM,
                method="POST",
                path="ai_reply",
                status=400,
                outcome="AI Key Missing",
                source=conversation.platform.value,
                payload={"conversation_id": conversation.id},
            )
            return None

        adapter = self._registry.get(conversation.platform)
        last_incoming = next(
            (
                m
                for m in reversed(conversation.messages)
                if m.direction == MessageDirection.INCOMING
            ),
            None,
        )
        if adapter is None or last_incoming is None:
            return None

        await self._send_typing(adapter, conversation, last_incoming)
        window = conversation.messages[-self._settings.ai_context_window :]
        text = await self._generate(conversation, window, config)
        return await self._relay(conversation.id, text, human=False)

    async def _send_typing(
        self,
        adapter: BasePlatformAdapter,
        conversation: Conversation,
        last_incoming: Message,
    ) -> None:
        try:
            await adapter.send_typing(
                conversation.external_user_id,
                reply_to=last_incoming.id,
                account_id=conversation.account_id,
            )
        except Exception as e:
            logger.warning("Typing indicator for %s failed: %s", conversation.id, e)

    async def _generate(
        self,
        conversation: Conversation,
        window: Sequence[Message],
        config: RuntimeConfig,
    ) -> str:
        """Ask the AI provider; any failure yields the fixed fallback reply."""
        system_prompt = build_system_prompt(
            conversation.platform, config, self._settings.ai_reply_max_chars
        )
        url = f"{config.ai_api_base.rstrip('/')}/chat/completions"
        request_payload = {
            "model": config.ai_model,
            "messages": [{"role": role_for(m), "content": m.text} for m in window],
        }
        try:
            runner = self._llm_factory(config)
            text = await runner.reply(window, system_prompt)
        except Exception as e:
            logger.warning("AI reply for %s failed: %s", conversation.id, e)
            await asyncio.to_thread(
                self._event_log.record,
                direction=LogDirection.OUTBOUND_API,
                method="POST",
                path=url,
                status=getattr(e, "status_code", None) or 0,
                outcome="AI Reply Failed",
                source=conversation.platform.value,
                payload={"request": request_payload, "error": str(e)},
                secrets=config.secret_values(),
            )
            return FALLBACK_REPLY

        await asyncio.to_thread(
            self._event_log.record,
            direction=LogDirection.OUTBOUND_API,
            method="POST",
            path=url,
            status=200,
            outcome="AI Reply Generated",
            source=conversation.platform.value,
            payload={"request": request_payload, "response": text},
            secrets=config.secret_values(),
        )
        return text or FALLBACK_REPLY

    # ------------------------------------------------------------------
    # Human-operator messages
    # ------------------------------------------------------------------

    async def send_human_message(self, conversation_id: str, text: str) -> Message:
        """
        Pause automatic replies for the conversation, then relay text.

        Raises:
            ConversationNotFoundError: unknown conversation id.
        """
        conversation = await self._load(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        key = build_conversation_key(conversation.platform, conversation.external_user_id)
        async with self._locks.hold(key):
            conversation = await self._load(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            if not conversation.ai_paused:
                conversation.ai_paused = True
                await self._save(conversation, move_to_front=False)
        message = await self._relay(conversation_id, text, human=True)
        if message is None:
            raise ConversationNotFoundError(conversation_id)
        return message

    async def set_ai_paused(self, conversation_id: str, paused: bool) -> Conversation:
        conversation = await self._load(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        key = build_conversation_key(conversation.platform, conversation.external_user_id)
        async with self._locks.hold(key):
            conversation = await self._load(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            conversation.ai_paused = paused
            await self._save(conversation, move_to_front=False)
        return conversation

    # ------------------------------------------------------------------
    # Relay
    # ------------------------------------------------------------------

    async def _load(self, conversation_id: str) -> Optional[Conversation]:
        return await asyncio.to_thread(
            self._conversations.get_conversation, conversation_id
        )

    async def _save(self, conversation: Conversation, move_to_front: bool) -> None:
        await asyncio.to_thread(
            self._conversations.save, conversation, move_to_front=move_to_front
        )

    async def _relay(
        self, conversation_id: str, text: str, *, human: bool
    ) -> Optional[Message]:
        conversation = await self._load(conversation_id)
        if conversation is None:
            return None
        if not human and conversation.ai_paused:
            # An operator took over while the reply was being generated
            logger.info("Dropping AI reply for paused conversation %s", conversation_id)
            return None

        result = await self._send(conversation, text)
        message = Message(
            id=result.platform_message_id or f"out_{uuid4().hex}",
            direction=MessageDirection.OUTGOING,
            text=text,
            status=MessageStatus.SENT if result.success else MessageStatus.FAILED,
            is_human_override=human,
        )
        key = build_conversation_key(conversation.platform, conversation.external_user_id)
        async with self._locks.hold(key):
            conversation = await self._load(conversation_id)
            if conversation is None:
                return None
            self._conversations.append_message(conversation, message)
            await self._save(conversation, move_to_front=True)
        return message

    async def _send(self, conversation: Conversation, text: str) -> OutboundSendResult:
        adapter = self._registry.get(conversation.platform)
        if adapter is None:
            return OutboundSendResult(success=False, error="No adapter for platform")
        try:
            return await adapter.send_text(
                conversation.external_user_id, text, account_id=conversation.account_id
            )
        except Exception as e:
            logger.warning("Send to %s failed: %s", conversation.id, e)
            return OutboundSendResult(success=False, error=str(e))

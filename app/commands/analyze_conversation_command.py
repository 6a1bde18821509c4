"""
Command to analyze a conversation with the AI provider.

Returns a short summary of the customer's intent, the next best action and
a suggested tone, for the operator dashboard.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import HTTPException

from app.core.app_state import AppState
from app.schemas.event_log import LogDirection

logger = logging.getLogger(__name__)


class AnalyzeConversationCommand:
    def __init__(self, state: AppState) -> None:
        self.state = state

    async def execute(self, conversation_id: str) -> dict[str, Any]:
        """
        Raises:
            HTTPException: 404 unknown conversation, 400 no AI key configured,
                502 the AI provider failed.
        """
        conversation = await asyncio.to_thread(
            self.state.conversations.get_conversation, conversation_id
        )
        if conversation is None:
            raise HTTPException(status_code=404, detail="Conversation not found")
        config = await asyncio.to_thread(self.state.config_service.get)
        if not config.ai_api_key:
            raise HTTPException(status_code=400, detail="AI API key is not configured")

        url = f"{config.ai_api_base.rstrip('/')}/chat/completions"
        request_payload = {
            "model": config.ai_model,
            "conversation_id": conversation.id,
            "message_count": len(conversation.messages),
        }
        try:
            runner = self.state.llm_factory(config)
            analysis = await runner.analyze(conversation.messages)
        except Exception as e:
            logger.warning("Analysis of %s failed: %s", conversation.id, e)
            await asyncio.to_thread(
                self.state.event_log.record,
                direction=LogDirection.OUTBOUND_API,
                method="POST",
                path=url,
                status=getattr(e, "status_code", None) or 0,
                outcome="AI Analysis Failed",
                source=conversation.platform.value,
                payload={"request": request_payload, "error": str(e)},
                secrets=config.secret_values(),
            )
            raise HTTPException(status_code=502, detail="AI analysis failed") from e

        await asyncio.to_thread(
            self.state.event_log.record,
            direction=LogDirection.OUTBOUND_API,
            method="POST",
            path=url,
            status=200,
            outcome="AI Analysis",
            source=conversation.platform.value,
            payload={"request": request_payload, "response": analysis},
            secrets=config.secret_values(),
        )
        return {"analysis": analysis}

"""
Command to send a human-operator message into a conversation.

Pauses automatic replies for the conversation, relays the text through the
platform adapter and records it as an outgoing message.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException

from app.core.app_state import AppState
from app.schemas.conversation import SendMessageRequest
from app.services.reply_dispatcher import ConversationNotFoundError

logger = logging.getLogger(__name__)


class SendOutboundCommand:
    """
    Command to send an operator message to the conversation's platform user.
    The message is recorded even when the platform rejects it (status "failed").
    """

    def __init__(self, state: AppState) -> None:
        self.state = state

    async def execute(self, conversation_id: str, body: SendMessageRequest) -> dict[str, Any]:
        """
        Returns:
            dict: {"data": <message>} with the recorded outgoing message.

        Raises:
            HTTPException: 404 if the conversation does not exist.
        """
        try:
            message = await self.state.dispatcher.send_human_message(
                conversation_id, body.text
            )
        except ConversationNotFoundError as e:
            raise HTTPException(status_code=404, detail="Conversation not found") from e
        logger.info(
            "Operator message %s sent to %s (status=%s)",
            message.id,
            conversation_id,
            message.status.value,
        )
        return {"data": message.model_dump(mode="json", by_alias=True)}

from fastapi import Depends, HTTPException, Request

from app.core.app_state import AppState
from app.schemas.conversation import Conversation


def get_app_state(request: Request) -> AppState:
    """FastAPI dependency returning the application's service container."""
    return request.app.state.relay


def get_conversation_by_id(
    id: str,
    state: AppState = Depends(get_app_state),
) -> Conversation:
    """FastAPI dependency to get a conversation by ID."""
    conversation = state.conversations.get_conversation(id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation

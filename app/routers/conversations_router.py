"""
Conversation routes for the operator dashboard.

Every route is served under both /api/conversations and /api/threads.
Handlers that only read or write storage are plain functions, so FastAPI runs
them in its threadpool; async handlers offload storage to worker threads.
"""

from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException

from app.commands.analyze_conversation_command import AnalyzeConversationCommand
from app.commands.outbound.send_outbound_command import SendOutboundCommand
from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state, get_conversation_by_id
from app.schemas.conversation import (
    AnalyzeRequest,
    Conversation,
    SendMessageRequest,
)
from app.services.reply_dispatcher import ConversationNotFoundError

router = APIRouter(
    prefix="/api",
    tags=["conversations"],
    responses={404: {"description": "Not found"}},
)


@router.get("/conversations", response_model=List[Conversation])
@router.get("/threads", response_model=List[Conversation])
def list_conversations(state: AppState = Depends(get_app_state)) -> List[Conversation]:
    """All conversations, most recently active first."""
    return state.conversations.get_conversations()


@router.get("/conversations/{id}", response_model=Conversation)
@router.get("/threads/{id}", response_model=Conversation)
def get_conversation(
    conversation: Conversation = Depends(get_conversation_by_id),
) -> Conversation:
    return conversation


@router.post("/conversations/{id}/message")
@router.post("/threads/{id}/send")
async def send_message(
    id: str,
    body: SendMessageRequest,
    state: AppState = Depends(get_app_state),
) -> dict[str, Any]:
    """Send an operator message and pause automatic replies for the conversation."""
    return await SendOutboundCommand(state).execute(id, body)


@router.post("/conversations/{id}/pause", response_model=Conversation)
@router.post("/threads/{id}/pause", response_model=Conversation)
async def pause_conversation(
    id: str, state: AppState = Depends(get_app_state)
) -> Conversation:
    return await _set_paused(state, id, True)


@router.post("/conversations/{id}/resume", response_model=Conversation)
@router.post("/threads/{id}/resume", response_model=Conversation)
async def resume_conversation(
    id: str, state: AppState = Depends(get_app_state)
) -> Conversation:
    return await _set_paused(state, id, False)


async def _set_paused(state: AppState, id: str, paused: bool) -> Conversation:
    try:
        return await state.dispatcher.set_ai_paused(id, paused)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e


@router.delete("/conversations/{id}", status_code=204)
@router.delete("/threads/{id}", status_code=204)
def delete_conversation(id: str, state: AppState = Depends(get_app_state)) -> None:
    if not state.conversations.delete_conversation(id):
        raise HTTPException(status_code=404, detail="Conversation not found")


@router.post("/ai/analyze")
async def analyze_conversation(
    body: AnalyzeRequest, state: AppState = Depends(get_app_state)
) -> dict[str, Any]:
    """Summarize intent, next best action and tone for a conversation."""
    return await AnalyzeConversationCommand(state).execute(body.thread_id)

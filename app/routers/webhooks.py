"""
Webhook routes for inbound Meta platform deliveries.

GET answers the subscription handshake; POST acknowledges event deliveries
and hands them to background processing.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse

from app.commands.webhooks import IngestWebhookCommand, VerifyWebhookCommand
from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state

router = APIRouter(prefix="/webhook", tags=["webhooks"])


@router.get("/{platform}", response_class=PlainTextResponse)
def verify_webhook(
    platform: str,
    request: Request,
    state: AppState = Depends(get_app_state),
) -> PlainTextResponse:
    """Echo hub.challenge when hub.verify_token matches; 400/403 otherwise."""
    return VerifyWebhookCommand(state).execute(platform, request.query_params)


@router.post("/{platform}")
async def receive_webhook(
    platform: str,
    request: Request,
    background_tasks: BackgroundTasks,
    state: AppState = Depends(get_app_state),
) -> dict[str, str]:
    """Acknowledge the delivery; 500 only when the body is not JSON."""
    raw_body = await request.body()
    return await IngestWebhookCommand(state).execute(platform, raw_body, background_tasks)

from fastapi import APIRouter, Depends

from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state

router = APIRouter(tags=["system"])


@router.get("/health")
@router.get("/api/health")
def health(state: AppState = Depends(get_app_state)) -> dict:
    """Liveness check with basic counters."""
    return {
        "status": "ok",
        "app": state.settings.app_name,
        "conversations": state.conversations.count(),
    }

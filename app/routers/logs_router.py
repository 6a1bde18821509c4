from typing import List

from fastapi import APIRouter, Depends

from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state
from app.schemas.event_log import LogEntry

router = APIRouter(prefix="/api", tags=["logs"])


@router.get("/logs", response_model=List[LogEntry])
def list_logs(state: AppState = Depends(get_app_state)) -> List[LogEntry]:
    """Diagnostic event log, most recent first."""
    return state.event_log.list()


@router.delete("/logs", status_code=204)
def clear_logs(state: AppState = Depends(get_app_state)) -> None:
    state.event_log.clear()

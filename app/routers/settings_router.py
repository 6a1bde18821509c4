"""
Runtime configuration routes (/api/settings, aliased as /api/config).

Secrets are always returned masked. Saving a masked value back leaves the
stored secret unchanged.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state
from app.schemas.settings import RuntimeConfigUpdate
from app.stores.base import StorageError

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings")
@router.get("/config")
def get_runtime_settings(state: AppState = Depends(get_app_state)) -> dict[str, Any]:
    try:
        return state.config_service.get().masked()
    except StorageError as e:
        raise HTTPException(status_code=500, detail="Settings storage unavailable") from e


@router.post("/settings")
@router.post("/config")
def update_runtime_settings(
    data: RuntimeConfigUpdate,
    state: AppState = Depends(get_app_state),
) -> dict[str, Any]:
    """Apply the provided fields; omitted or null fields keep their value."""
    try:
        config = state.config_service.update(data)
    except StorageError as e:
        raise HTTPException(status_code=500, detail="Failed to save settings") from e
    return {"success": True, "settings": config.masked()}

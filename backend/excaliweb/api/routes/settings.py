from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from excaliweb.api.deps import get_settings
from excaliweb.core.config import Settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsResponse(BaseModel):
    defaultWorkspace: bool
    dataDir: Optional[str] = None


@router.get("", response_model=SettingsResponse)
async def get_public_settings(settings: Settings = Depends(get_settings)):
    """Retrieve the read-only server configuration."""
    return settings.get_public_settings()

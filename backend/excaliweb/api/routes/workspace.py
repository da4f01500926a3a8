import os
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.util import get_remote_address

from excaliweb.api.deps import get_settings, get_store
from excaliweb.core.config import Settings, settings as app_settings
from excaliweb.services.document_store import DocumentStore, FolderEntry

router = APIRouter(prefix="/workspace", tags=["workspace"])

limiter = Limiter(key_func=get_remote_address)


class SelectWorkspaceRequest(BaseModel):
    path: str = Field(min_length=1)


class SelectWorkspaceResponse(BaseModel):
    workspacePath: str
    rootFolder: FolderEntry


class WorkspaceTreeResponse(BaseModel):
    rootFolder: Optional[FolderEntry] = None


class DefaultWorkspaceResponse(BaseModel):
    enabled: bool
    path: Optional[str] = None
    name: Optional[str] = None
    dataDir: Optional[str] = None


@router.get("/default", response_model=DefaultWorkspaceResponse, response_model_exclude_none=True)
async def get_default_workspace(settings: Settings = Depends(get_settings)):
    """Default workspace configuration, used by the client to skip selection."""
    if not settings.default_workspace_enabled:
        return DefaultWorkspaceResponse(enabled=False)

    return DefaultWorkspaceResponse(
        enabled=True,
        path=settings.data_dir,
        name=os.path.basename(os.path.normpath(settings.data_dir)),
        dataDir=settings.data_dir,
    )


@router.post("/select", response_model=SelectWorkspaceResponse)
@limiter.limit(lambda: app_settings.select_rate_limit)
async def select_workspace(
    request: Request,
    body: SelectWorkspaceRequest,
    store: DocumentStore = Depends(get_store),
):
    """Set the workspace path and return its file tree."""
    root_folder = await store.select_workspace(body.path)
    return SelectWorkspaceResponse(
        workspacePath=request.app.state.workspace.get_workspace_path(),
        rootFolder=root_folder,
    )


@router.get("", response_model=WorkspaceTreeResponse)
async def get_workspace(store: DocumentStore = Depends(get_store)):
    """Current workspace tree, or null when none is selected."""
    return WorkspaceTreeResponse(rootFolder=await store.get_tree())

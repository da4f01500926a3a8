from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from excaliweb.api.deps import get_directory_browser
from excaliweb.services.directory_browser import (
    DirectoryBrowser,
    DirectoryListing,
    QuickAccessDirectory,
)

router = APIRouter(prefix="/filesystem", tags=["filesystem"])


class HomeResponse(BaseModel):
    path: str


class CommonDirectoriesResponse(BaseModel):
    directories: List[QuickAccessDirectory]


@router.get("/list", response_model=DirectoryListing)
async def list_directories(
    path: Optional[str] = None,
    browser: DirectoryBrowser = Depends(get_directory_browser),
):
    """List subdirectories of ``path`` for workspace selection."""
    return await browser.list_directories(path)


@router.get("/home", response_model=HomeResponse)
async def get_home(browser: DirectoryBrowser = Depends(get_directory_browser)):
    """Starting directory for the browser (data directory if configured)."""
    return HomeResponse(path=browser.home())


@router.get("/common", response_model=CommonDirectoriesResponse)
async def get_common_directories(browser: DirectoryBrowser = Depends(get_directory_browser)):
    """Quick-access directories."""
    return CommonDirectoriesResponse(directories=await browser.common_directories())

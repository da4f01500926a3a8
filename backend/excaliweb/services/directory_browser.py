"""Directory listing used while choosing a workspace."""
import asyncio
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from excaliweb.core.errors import AccessDenied, NotADirectory, NotFound, PathEscape
from excaliweb.services.paths import is_within, normalize_root


class DirectoryItem(BaseModel):
    name: str
    path: str
    isDirectory: bool = True
    isAccessible: bool


class DirectoryListing(BaseModel):
    currentPath: str
    parentPath: Optional[str] = None
    directories: List[DirectoryItem]


class QuickAccessDirectory(BaseModel):
    name: str
    path: str


def _is_readable(path: str) -> bool:
    return os.access(path, os.R_OK)


def _list_subdirectories(directory: str) -> List[DirectoryItem]:
    items = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            items.append(
                DirectoryItem(
                    name=entry.name,
                    path=entry.path,
                    isAccessible=_is_readable(entry.path),
                )
            )
    # Accessible first, then alphabetical
    items.sort(key=lambda item: (not item.isAccessible, item.name))
    return items


class DirectoryBrowser:
    """Browse directories on the server host.

    With a data root configured, browsing never leaves it. Without one, the
    whole filesystem is browsable starting at the user's home directory.
    """

    def __init__(self, data_root: Optional[str] = None):
        self.data_root = normalize_root(data_root) if data_root else None

    def home(self) -> str:
        """Starting directory: the data root if configured, else the user's home."""
        if self.data_root:
            return self.data_root
        return str(Path.home())

    def _parent_of(self, current: str) -> Optional[str]:
        parent = os.path.dirname(current)
        if parent == current:
            return None
        if self.data_root is None:
            return parent
        if is_within(parent, self.data_root):
            return parent
        if current != self.data_root:
            return self.data_root
        return None

    async def list_directories(self, path: Optional[str] = None) -> DirectoryListing:
        """List readable-flagged subdirectories of ``path`` (default: home()).

        Raises:
            PathEscape: if ``path`` is outside the data root.
            NotFound: if ``path`` does not exist.
            AccessDenied: if ``path`` is not readable.
            NotADirectory: if ``path`` is a file.
        """
        current = normalize_root(path) if path else self.home()

        if self.data_root and not is_within(current, self.data_root):
            raise PathEscape("Access denied: Path outside data directory", boundary="data_root")

        if not await asyncio.to_thread(os.path.exists, current):
            raise NotFound(f"Directory not found: {current}")
        if not await asyncio.to_thread(_is_readable, current):
            raise AccessDenied(f"Cannot access directory: {current}")
        if not await asyncio.to_thread(os.path.isdir, current):
            raise NotADirectory()

        directories = await asyncio.to_thread(_list_subdirectories, current)
        return DirectoryListing(
            currentPath=current,
            parentPath=self._parent_of(current),
            directories=directories,
        )

    async def common_directories(self) -> List[QuickAccessDirectory]:
        """Quick-access shortcuts: only the data root when one is configured."""
        if self.data_root:
            return [QuickAccessDirectory(name="Data Directory", path=self.data_root)]

        home = Path.home()
        candidates = [
            QuickAccessDirectory(name="Home", path=str(home)),
            QuickAccessDirectory(name="Documents", path=str(home / "Documents")),
            QuickAccessDirectory(name="Desktop", path=str(home / "Desktop")),
            QuickAccessDirectory(name="Downloads", path=str(home / "Downloads")),
        ]
        readable = await asyncio.gather(
            *(asyncio.to_thread(_is_readable, d.path) for d in candidates)
        )
        return [d for d, ok in zip(candidates, readable) if ok]

"""Workspace tree snapshots."""
import asyncio
import os
from typing import List, Union

from excaliweb.core.errors import WorkspaceMissing
from excaliweb.services.document_format import display_name, is_document_filename
from excaliweb.services.document_store import FileEntry, FolderEntry


def _sort_key(entry: Union[FileEntry, FolderEntry]):
    # Folders first, then files, each group alphabetically ignoring case.
    # The exact name breaks ties so the order is total.
    return (entry.kind != "folder", entry.name.casefold(), entry.name)


def build_tree_sync(directory_path: str, parent_path: str = "") -> FolderEntry:
    """Walk ``directory_path`` and return its folder entry.

    Dot-directories and dotfiles are skipped, as is any file without the
    document extension. Empty folders are kept. Symlinked directories are
    not descended into.
    """
    dir_name = os.path.basename(os.path.normpath(directory_path))
    current_path = f"{parent_path}/{dir_name}" if parent_path else dir_name
    children: List[Union[FileEntry, FolderEntry]] = []

    with os.scandir(directory_path) as entries:
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir(follow_symlinks=False):
                children.append(build_tree_sync(entry.path, current_path))
            elif entry.is_file() and is_document_filename(entry.name):
                children.append(
                    FileEntry(
                        name=display_name(entry.name),
                        path=f"{current_path}/{entry.name}",
                        parentPath=current_path,
                    )
                )

    children.sort(key=_sort_key)

    return FolderEntry(
        name=dir_name,
        path=current_path,
        parentPath=parent_path,
        children=children,
        isExpanded=parent_path == "",
    )


async def build_tree(directory_path: str, parent_path: str = "") -> FolderEntry:
    """Build a tree snapshot off the event loop.

    Raises:
        WorkspaceMissing: if ``directory_path`` is not an existing directory.
    """
    if not await asyncio.to_thread(os.path.isdir, directory_path):
        raise WorkspaceMissing(f"Workspace path does not exist: {directory_path}")
    return await asyncio.to_thread(build_tree_sync, directory_path, parent_path)

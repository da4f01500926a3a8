import asyncio
import logging
import os
import posixpath
import shutil
from typing import Optional

from excaliweb.core.errors import (
    AlreadyExists,
    CorruptDocument,
    InvalidName,
    NotADirectory,
    NotFound,
    NoWorkspaceSelected,
    OperationFailed,
    PathEscape,
    RootDeletionForbidden,
)
from excaliweb.services.document_format import (
    DOCUMENT_EXTENSION,
    ExcalidrawDocument,
    display_name,
    ensure_extension,
    new_document,
    parse_document,
    serialize_document,
    welcome_document,
)
from excaliweb.services.document_store import DocumentStore, FileEntry, FolderEntry
from excaliweb.services.paths import is_within, normalize_root, resolve_path
from excaliweb.services.tree import build_tree
from excaliweb.services.workspace import WorkspaceState

logger = logging.getLogger(__name__)

WELCOME_FILENAME = "Welcome.excalidraw"


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def _write_text(path: str, content: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def _is_real_directory(path: str) -> bool:
    return os.path.isdir(path) and not os.path.islink(path)


def _occupied_by_other(path: str, target: str) -> bool:
    """True if something other than ``path`` itself exists at ``target``."""
    if not os.path.lexists(target):
        return False
    try:
        return not os.path.samefile(path, target)
    except OSError:
        # dangling symlink at target
        return True


def _leaf_name(name: str) -> str:
    """Last segment of a client-supplied name.

    Raises InvalidName if it is empty or hidden (``.``, ``..`` and dotfiles
    included), since the tree never shows such entries.
    """
    leaf = name.replace(os.sep, "/").rsplit("/", 1)[-1]
    if not leaf or leaf.startswith("."):
        raise InvalidName(f"Invalid name: {name!r}")
    return leaf


def _create_file(path: str, content: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    # exclusive create, never overwrites
    with open(path, "x", encoding="utf-8") as f:
        f.write(content)


class LocalDocumentStore(DocumentStore):
    """Document store over the local filesystem, confined to the workspace.

    Every client path goes through ``resolve_path`` before any I/O, and all
    blocking calls run in worker threads.
    """

    def __init__(self, workspace: WorkspaceState, data_root: Optional[str] = None):
        self.workspace = workspace
        self.data_root = data_root

    def _resolve(self, relative_path: str) -> str:
        return resolve_path(relative_path, self.workspace.get_workspace_path(), self.data_root)

    def _workspace_name(self) -> str:
        name = self.workspace.workspace_name
        if name is None:
            raise NoWorkspaceSelected()
        return name

    async def get_tree(self) -> Optional[FolderEntry]:
        workspace_path = self.workspace.get_workspace_path()
        if workspace_path is None:
            return None
        return await build_tree(workspace_path)

    async def read_document(self, relative_path: str) -> ExcalidrawDocument:
        absolute_path = self._resolve(relative_path)
        if not await asyncio.to_thread(os.path.isfile, absolute_path):
            raise NotFound(f"File not found: {relative_path}")

        try:
            content = await asyncio.to_thread(_read_text, absolute_path)
        except FileNotFoundError as e:
            # removed after the isfile check
            raise NotFound(f"File not found: {relative_path}") from e
        except UnicodeDecodeError as e:
            raise CorruptDocument(f"File is not valid UTF-8: {relative_path}") from e
        return parse_document(content, os.path.basename(absolute_path))

    async def write_document(self, relative_path: str, content: ExcalidrawDocument) -> None:
        absolute_path = self._resolve(relative_path)
        if not await asyncio.to_thread(os.path.isdir, os.path.dirname(absolute_path)):
            raise NotFound(f"Parent folder not found: {relative_path}")

        await asyncio.to_thread(_write_text, absolute_path, serialize_document(content))
        logger.debug("Saved %s", absolute_path)

    async def create_document(self, name: str, parent_path: str) -> FileEntry:
        leaf = _leaf_name(name)
        file_name = ensure_extension(name)
        # parent_path may carry the workspace name; resolve_path strips it
        file_path = f"{parent_path}/{file_name}" if parent_path else file_name
        absolute_path = self._resolve(file_path)

        if await asyncio.to_thread(os.path.lexists, absolute_path):
            raise AlreadyExists(f"File already exists: {file_name}")

        try:
            await asyncio.to_thread(_create_file, absolute_path, serialize_document(new_document()))
        except FileExistsError as e:
            raise AlreadyExists(f"File already exists: {file_name}") from e

        logger.info("Created document %s", absolute_path)
        return FileEntry(
            name=display_name(leaf),
            path=file_path,
            parentPath=posixpath.dirname(file_path) or self._workspace_name(),
        )

    async def create_folder(self, name: str, parent_path: str) -> FolderEntry:
        leaf = _leaf_name(name)
        folder_path = f"{parent_path}/{name}" if parent_path else name
        absolute_path = self._resolve(folder_path)

        if await asyncio.to_thread(os.path.lexists, absolute_path):
            raise AlreadyExists(f"Folder already exists: {name}")

        try:
            await asyncio.to_thread(os.makedirs, absolute_path)
        except FileExistsError as e:
            raise AlreadyExists(f"Folder already exists: {name}") from e

        logger.info("Created folder %s", absolute_path)
        return FolderEntry(
            name=leaf,
            path=folder_path,
            parentPath=posixpath.dirname(folder_path) or self._workspace_name(),
            children=[],
            isExpanded=False,
        )

    async def delete_document(self, relative_path: str) -> None:
        absolute_path = self._resolve(relative_path)
        if not await asyncio.to_thread(os.path.isfile, absolute_path):
            raise NotFound(f"File not found: {relative_path}")

        await asyncio.to_thread(os.unlink, absolute_path)
        logger.info("Deleted document %s", absolute_path)

    async def delete_folder(self, relative_path: str) -> None:
        workspace_name = self._workspace_name()
        if not relative_path or relative_path == workspace_name:
            raise RootDeletionForbidden()

        absolute_path = self._resolve(relative_path)
        if absolute_path == normalize_root(self.workspace.get_workspace_path()):
            raise RootDeletionForbidden()

        if not await asyncio.to_thread(os.path.lexists, absolute_path):
            raise NotFound(f"Folder not found: {relative_path}")
        if not await asyncio.to_thread(_is_real_directory, absolute_path):
            raise NotADirectory()

        await asyncio.to_thread(shutil.rmtree, absolute_path)
        logger.info("Deleted folder %s", absolute_path)

    async def rename_document(self, relative_path: str, new_name: str) -> FileEntry:
        old_absolute_path = self._resolve(relative_path)
        if not await asyncio.to_thread(os.path.isfile, old_absolute_path):
            raise NotFound(f"File not found: {relative_path}")

        if "/" in new_name or os.sep in new_name:
            raise InvalidName(f"Invalid file name: {new_name!r}")
        _leaf_name(new_name)

        file_name = ensure_extension(new_name)
        parent_path = posixpath.dirname(relative_path)
        new_relative_path = posixpath.join(parent_path, file_name)
        new_absolute_path = self._resolve(new_relative_path)

        if new_absolute_path != old_absolute_path:
            if await asyncio.to_thread(_occupied_by_other, old_absolute_path, new_absolute_path):
                raise AlreadyExists(f"A file with this name already exists: {file_name}")

        await asyncio.to_thread(os.rename, old_absolute_path, new_absolute_path)
        logger.info("Renamed %s -> %s", old_absolute_path, new_absolute_path)

        return FileEntry(
            name=display_name(new_name),
            path=new_relative_path,
            parentPath=parent_path or self._workspace_name(),
        )

    async def select_workspace(self, workspace_path: str) -> FolderEntry:
        """Make ``workspace_path`` the active workspace and return its tree.

        With a data root configured the path must lie inside it, and a
        missing directory is created. Without one, it must already exist.
        """
        normalized = normalize_root(workspace_path)

        if self.data_root and not is_within(normalized, normalize_root(self.data_root)):
            raise PathEscape(
                f"Invalid workspace path: Must be within data directory {self.data_root}",
                boundary="data_root",
            )

        if not await asyncio.to_thread(os.path.exists, normalized):
            if not self.data_root:
                raise NotFound(f"Path does not exist or is not accessible: {workspace_path}")
            try:
                await asyncio.to_thread(os.makedirs, normalized, exist_ok=True)
            except OSError as e:
                raise OperationFailed(f"Path does not exist and could not be created: {e}") from e
            logger.info("Created workspace directory %s", normalized)
        elif not await asyncio.to_thread(os.path.isdir, normalized):
            raise NotADirectory()

        self.workspace.set_workspace_path(normalized)
        logger.info("Workspace selected: %s", normalized)
        return await build_tree(normalized)

    async def initialize_default_workspace(self) -> Optional[str]:
        """Select the data root as workspace and seed it with a welcome file.

        The welcome file is only written when the directory holds no
        documents yet. Returns the path of the file written, if any.
        """
        if not self.data_root:
            raise NoWorkspaceSelected("Default workspace requires a data directory")

        await self.select_workspace(self.data_root)
        workspace_path = self.workspace.get_workspace_path()

        names = await asyncio.to_thread(os.listdir, workspace_path)
        if any(name.endswith(DOCUMENT_EXTENSION) for name in names):
            return None

        welcome_path = os.path.join(workspace_path, WELCOME_FILENAME)
        await asyncio.to_thread(_write_text, welcome_path, serialize_document(welcome_document()))
        logger.info("Welcome file created: %s", welcome_path)
        return welcome_path

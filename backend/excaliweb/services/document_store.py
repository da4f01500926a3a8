from abc import ABC, abstractmethod
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from excaliweb.services.document_format import ExcalidrawDocument
from excaliweb.services.workspace import WorkspaceState


class FileEntry(BaseModel):
    """One drawing document in the workspace tree. Content is fetched separately."""
    kind: Literal["file"] = "file"
    name: str
    path: str
    parentPath: str


class FolderEntry(BaseModel):
    """One directory in the workspace tree."""
    kind: Literal["folder"] = "folder"
    name: str
    path: str
    parentPath: str
    children: List["TreeEntry"] = Field(default_factory=list)
    isExpanded: bool = False


TreeEntry = Annotated[Union[FileEntry, FolderEntry], Field(discriminator="kind")]

FolderEntry.model_rebuild()


class DocumentStore(ABC):
    @abstractmethod
    async def select_workspace(self, workspace_path: str) -> FolderEntry:
        """Switch the active workspace and return its tree."""
        ...

    @abstractmethod
    async def initialize_default_workspace(self) -> Optional[str]:
        """Select the configured data root as workspace, seeding it if empty."""
        ...

    @abstractmethod
    async def get_tree(self) -> Optional[FolderEntry]:
        """Fresh snapshot of the workspace tree, None when no workspace is selected."""
        ...

    @abstractmethod
    async def read_document(self, relative_path: str) -> ExcalidrawDocument:
        ...

    @abstractmethod
    async def write_document(self, relative_path: str, content: ExcalidrawDocument) -> None:
        ...

    @abstractmethod
    async def create_document(self, name: str, parent_path: str) -> FileEntry:
        ...

    @abstractmethod
    async def create_folder(self, name: str, parent_path: str) -> FolderEntry:
        ...

    @abstractmethod
    async def delete_document(self, relative_path: str) -> None:
        ...

    @abstractmethod
    async def delete_folder(self, relative_path: str) -> None:
        ...

    @abstractmethod
    async def rename_document(self, relative_path: str, new_name: str) -> FileEntry:
        ...


def get_document_store(workspace: WorkspaceState, data_root: Optional[str] = None) -> DocumentStore:
    """Factory for the store backing the file routes."""
    from excaliweb.services.local_files import LocalDocumentStore

    return LocalDocumentStore(workspace, data_root)

"""File routes: tree, document CRUD and folders.

Documents and folders are addressed by opaque identifiers (see
``excaliweb.services.identifiers``); create calls take tree paths.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from excaliweb.api.deps import get_store
from excaliweb.api.routes.workspace import WorkspaceTreeResponse
from excaliweb.services.document_format import ExcalidrawDocument, document_to_dict
from excaliweb.services.document_store import DocumentStore, FileEntry, FolderEntry
from excaliweb.services.identifiers import decode_file_id, encode_file_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


# Request/Response Models
class SaveFileRequest(BaseModel):
    content: ExcalidrawDocument


class CreateFileRequest(BaseModel):
    name: str = Field(min_length=1)
    parentPath: str = ""


class CreateFileResponse(BaseModel):
    fileId: str
    file: FileEntry


class CreateFolderRequest(BaseModel):
    name: str = Field(min_length=1)
    parentPath: str = ""


class CreateFolderResponse(BaseModel):
    folder: FolderEntry


class RenameFileRequest(BaseModel):
    newName: str = Field(min_length=1)


class RenameFileResponse(BaseModel):
    fileId: str
    file: FileEntry


class SuccessResponse(BaseModel):
    success: bool


# ============== Endpoints ============== #

@router.get("", response_model=WorkspaceTreeResponse)
async def get_files(store: DocumentStore = Depends(get_store)):
    """Get the file tree of the current workspace."""
    return WorkspaceTreeResponse(rootFolder=await store.get_tree())


@router.post("", response_model=CreateFileResponse)
async def create_file(body: CreateFileRequest, store: DocumentStore = Depends(get_store)):
    """Create a new, empty drawing."""
    file = await store.create_document(body.name, body.parentPath)
    return CreateFileResponse(fileId=encode_file_id(file.path), file=file)


@router.post("/folder", response_model=CreateFolderResponse)
async def create_folder(body: CreateFolderRequest, store: DocumentStore = Depends(get_store)):
    """Create a new folder (and any missing parents)."""
    folder = await store.create_folder(body.name, body.parentPath)
    return CreateFolderResponse(folder=folder)


@router.delete("/folder/{folder_id}", response_model=SuccessResponse)
async def delete_folder(folder_id: str, store: DocumentStore = Depends(get_store)):
    """Delete a folder and everything below it. The workspace root is protected."""
    await store.delete_folder(decode_file_id(folder_id))
    return SuccessResponse(success=True)


@router.get("/{file_id}")
async def read_file(file_id: str, store: DocumentStore = Depends(get_store)):
    """Get the content of a drawing."""
    document = await store.read_document(decode_file_id(file_id))
    return {"content": document_to_dict(document)}


@router.put("/{file_id}", response_model=SuccessResponse)
async def save_file(file_id: str, body: SaveFileRequest, store: DocumentStore = Depends(get_store)):
    """Overwrite a drawing. The parent folder must already exist."""
    relative_path = decode_file_id(file_id)
    await store.write_document(relative_path, body.content)
    logger.debug("Saved %s (%d elements)", relative_path, len(body.content.elements))
    return SuccessResponse(success=True)


@router.delete("/{file_id}", response_model=SuccessResponse)
async def delete_file(file_id: str, store: DocumentStore = Depends(get_store)):
    """Delete a drawing."""
    await store.delete_document(decode_file_id(file_id))
    return SuccessResponse(success=True)


@router.patch("/{file_id}/rename", response_model=RenameFileResponse)
async def rename_file(file_id: str, body: RenameFileRequest, store: DocumentStore = Depends(get_store)):
    """Rename a drawing within its folder. Returns the new identifier."""
    file = await store.rename_document(decode_file_id(file_id), body.newName)
    return RenameFileResponse(fileId=encode_file_id(file.path), file=file)

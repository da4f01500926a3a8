"""Excalidraw document model, templates and (de)serialization."""
import json
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from excaliweb.core.errors import CorruptDocument

DOCUMENT_EXTENSION = ".excalidraw"


class ExcalidrawDocument(BaseModel):
    """On-disk drawing document.

    Only the envelope is typed; elements, app state and embedded files are
    passed through untouched, as are unknown top-level keys.
    """

    model_config = ConfigDict(extra="allow")

    type: str = "excalidraw"
    version: int = 2
    source: str = ""
    elements: List[Any] = Field(default_factory=list)
    appState: Optional[Dict[str, Any]] = None
    files: Optional[Dict[str, Any]] = None


def ensure_extension(name: str) -> str:
    """Return ``name`` with the document extension appended if missing."""
    return name if name.endswith(DOCUMENT_EXTENSION) else f"{name}{DOCUMENT_EXTENSION}"


def display_name(filename: str) -> str:
    """Filename without the document extension."""
    if filename.endswith(DOCUMENT_EXTENSION):
        return filename[: -len(DOCUMENT_EXTENSION)]
    return filename


def is_document_filename(filename: str) -> bool:
    return filename.endswith(DOCUMENT_EXTENSION) and not filename.startswith(".")


def new_document() -> ExcalidrawDocument:
    """Empty document written by file creation."""
    return ExcalidrawDocument(
        type="excalidraw",
        version=2,
        source="excaliweb",
        elements=[],
        appState={"viewBackgroundColor": "#ffffff"},
        files={},
    )


WELCOME_TEXT = "Welcome to ExcaliWeb!\n\nStart drawing or create a new file."


def welcome_document() -> ExcalidrawDocument:
    """Starter document seeded into an empty default workspace."""
    text_element = {
        "type": "text",
        "id": "welcome-text",
        "x": 100,
        "y": 100,
        "width": 400,
        "height": 50,
        "text": WELCOME_TEXT,
        "fontSize": 20,
        "fontFamily": 1,
        "textAlign": "center",
        "verticalAlign": "middle",
        "strokeColor": "#000000",
        "backgroundColor": "transparent",
        "fillStyle": "hachure",
        "strokeWidth": 1,
        "strokeStyle": "solid",
        "roughness": 1,
        "opacity": 100,
        "angle": 0,
        "seed": 1,
        "version": 1,
        "versionNonce": 1,
        "isDeleted": False,
        "groupIds": [],
        "boundElements": None,
        "updated": int(time.time() * 1000),
        "link": None,
        "locked": False,
        "containerId": None,
        "originalText": WELCOME_TEXT,
        "lineHeight": 1.25,
    }
    return ExcalidrawDocument(
        type="excalidraw",
        version=2,
        source="https://excalidraw.com",
        elements=[text_element],
        appState={"viewBackgroundColor": "#ffffff"},
        files={},
    )


def parse_document(content: str, filename: str) -> ExcalidrawDocument:
    """Parse document text.

    Raises:
        CorruptDocument: if the text is not JSON or not a document envelope.
    """
    try:
        return ExcalidrawDocument.model_validate_json(content)
    except ValidationError as e:
        raise CorruptDocument(f"Failed to parse {filename}: {e.error_count()} invalid field(s)") from e


def document_to_dict(document: ExcalidrawDocument) -> Dict[str, Any]:
    """Wire/disk form of a document; unset optional maps are omitted."""
    data = document.model_dump(mode="json")
    for key in ("appState", "files"):
        if data.get(key) is None:
            data.pop(key, None)
    return data


def serialize_document(document: ExcalidrawDocument) -> str:
    """Pretty-printed JSON as stored on disk."""
    return json.dumps(document_to_dict(document), indent=2, ensure_ascii=False)

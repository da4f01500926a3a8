"""Active workspace root shared by request handlers."""
import os
from typing import Optional


class WorkspaceState:
    """Holds the currently selected workspace root.

    One instance lives on ``app.state.workspace`` and is handed to every
    store. Last write wins; setting does not validate the path.
    """

    def __init__(self, workspace_path: Optional[str] = None):
        self._workspace_path = workspace_path

    def set_workspace_path(self, workspace_path: str) -> None:
        self._workspace_path = workspace_path

    def get_workspace_path(self) -> Optional[str]:
        return self._workspace_path

    @property
    def is_selected(self) -> bool:
        return self._workspace_path is not None

    @property
    def workspace_name(self) -> Optional[str]:
        """Folder name of the workspace, the first segment of tree paths."""
        if self._workspace_path is None:
            return None
        return os.path.basename(os.path.normpath(self._workspace_path))

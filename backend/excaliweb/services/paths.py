"""Confinement checks for client-supplied paths.

Everything here is string arithmetic on normalized paths: nothing touches the
filesystem and symlinks are not followed. Callers check existence and type.
"""
import os
from typing import Optional

from excaliweb.core.errors import NoWorkspaceSelected, PathEscape


def normalize_root(path: str) -> str:
    """Absolute, normalized form of a configured root directory."""
    return os.path.normpath(os.path.abspath(path))


def is_within(path: str, root: str) -> bool:
    """True if ``path`` equals ``root`` or lies below it.

    Both arguments must already be normalized. ``/data2`` is not inside
    ``/data``.
    """
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def strip_workspace_prefix(relative_path: str, workspace_name: str) -> str:
    """Drop the leading workspace folder name that tree entries carry."""
    if relative_path == workspace_name:
        return ""
    if relative_path.startswith(workspace_name + "/"):
        return relative_path[len(workspace_name) + 1:]
    return relative_path


def resolve_path(
    relative_path: str,
    workspace_root: Optional[str],
    data_root: Optional[str] = None,
) -> str:
    """Map a workspace-relative path to a verified absolute path.

    Raises:
        NoWorkspaceSelected: if ``workspace_root`` is unset.
        PathEscape: if the result leaves the workspace or the data root.
    """
    if not workspace_root:
        raise NoWorkspaceSelected()

    workspace = normalize_root(workspace_root)
    clean = strip_workspace_prefix(relative_path, os.path.basename(workspace))
    candidate = os.path.normpath(os.path.join(workspace, clean))

    if not is_within(candidate, workspace):
        raise PathEscape(
            "Invalid path: Access outside workspace is not allowed",
            boundary="workspace",
        )

    if data_root:
        if not is_within(candidate, normalize_root(data_root)):
            raise PathEscape(
                "Invalid path: Access outside data directory is not allowed",
                boundary="data_root",
            )

    return candidate

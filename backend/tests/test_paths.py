"""
Tests for path confinement.

These tests verify that:
1. Relative paths (with or without the workspace name prefix) resolve inside the workspace
2. Traversal and absolute-path tricks are rejected with PathEscape, with or without a data root
3. Containment is a path-ancestor check, so sibling directories sharing a prefix don't match
"""

import os

import pytest

from excaliweb.core.errors import NoWorkspaceSelected, PathEscape
from excaliweb.services.paths import is_within, resolve_path, strip_workspace_prefix


WORKSPACE = "/data/ws"
DATA_ROOT = "/data"


class TestIsWithin:
    """Tests for is_within."""

    def test_equal_paths(self):
        assert is_within("/data", "/data") is True

    def test_descendant(self):
        assert is_within("/data/ws/a", "/data") is True

    def test_sibling_sharing_prefix_is_outside(self):
        assert is_within("/data2", "/data") is False
        assert is_within("/data-other/x", "/data") is False

    def test_parent_is_outside(self):
        assert is_within("/", "/data") is False

    def test_filesystem_root(self):
        assert is_within("/etc", "/") is True


class TestStripWorkspacePrefix:
    """Tests for strip_workspace_prefix."""

    def test_strips_leading_workspace_name(self):
        assert strip_workspace_prefix("ws/sub/a.excalidraw", "ws") == "sub/a.excalidraw"

    def test_workspace_name_alone_is_root(self):
        assert strip_workspace_prefix("ws", "ws") == ""

    def test_other_paths_untouched(self):
        assert strip_workspace_prefix("wsx/a", "ws") == "wsx/a"
        assert strip_workspace_prefix("sub/a", "ws") == "sub/a"


class TestResolvePath:
    """Tests for resolve_path."""

    def test_requires_workspace(self):
        with pytest.raises(NoWorkspaceSelected):
            resolve_path("a.excalidraw", None)

    def test_plain_relative_path(self):
        assert resolve_path("a.excalidraw", WORKSPACE) == "/data/ws/a.excalidraw"

    def test_tree_path_with_workspace_prefix(self):
        assert resolve_path("ws/sub/a.excalidraw", WORKSPACE) == "/data/ws/sub/a.excalidraw"

    def test_workspace_name_resolves_to_root(self):
        assert resolve_path("ws", WORKSPACE) == WORKSPACE
        assert resolve_path("", WORKSPACE) == WORKSPACE

    def test_inner_dot_segments_are_collapsed(self):
        assert resolve_path("ws/sub/../b.excalidraw", WORKSPACE) == "/data/ws/b.excalidraw"
        assert resolve_path("sub//./c.excalidraw", WORKSPACE) == "/data/ws/sub/c.excalidraw"

    def test_workspace_root_is_normalized(self):
        assert resolve_path("a", "/data/./ws/") == "/data/ws/a"

    @pytest.mark.parametrize("data_root", [None, DATA_ROOT])
    @pytest.mark.parametrize("attack", [
        "..",
        "../secret.excalidraw",
        "ws/../../etc/passwd",
        "sub/../../x",
        "/etc/passwd",
        "ws/../ws2/a.excalidraw",
    ])
    def test_escape_attempts_rejected(self, attack, data_root):
        with pytest.raises(PathEscape):
            resolve_path(attack, WORKSPACE, data_root)

    def test_sibling_workspace_with_shared_prefix_rejected(self):
        # /data/ws-other starts with the string "/data/ws" but is not inside it
        with pytest.raises(PathEscape):
            resolve_path("../ws-other/a.excalidraw", WORKSPACE)

    def test_workspace_outside_data_root_rejected(self):
        with pytest.raises(PathEscape) as exc_info:
            resolve_path("a.excalidraw", "/elsewhere/ws", DATA_ROOT)
        assert exc_info.value.boundary == "data_root"

    def test_data_root_sharing_prefix_rejected(self):
        with pytest.raises(PathEscape):
            resolve_path("a.excalidraw", "/data2/ws", DATA_ROOT)

    def test_resolved_path_is_real_descendant(self, tmp_path):
        workspace = tmp_path / "ws"
        (workspace / "sub").mkdir(parents=True)
        resolved = resolve_path("ws/sub/a.excalidraw", str(workspace), str(tmp_path))
        assert os.path.commonpath([resolved, str(workspace)]) == str(workspace)
        assert resolved != str(workspace)

"""
HTTP tests for the workspace, file, filesystem and settings routes.

Run with: python -m pytest backend/tests/test_api.py -v
"""

import logging

import pytest
from fastapi.testclient import TestClient

from excaliweb.api.routes.workspace import limiter
from excaliweb.core.config import Settings, settings as app_settings
from excaliweb.main import create_app
from excaliweb.services.document_format import document_to_dict, new_document
from excaliweb.services.identifiers import encode_file_id


@pytest.fixture
def data_dir(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    return data


@pytest.fixture
def client(data_dir):
    limiter.reset()
    app = create_app(Settings(data_dir=str(data_dir), default_workspace=False))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def workspace_client(client, data_dir):
    """Client with ``data/ws`` selected as workspace."""
    response = client.post("/api/workspace/select", json={"path": str(data_dir / "ws")})
    assert response.status_code == 200
    return client


class TestWorkspaceRoutes:
    """Workspace selection and tree retrieval."""

    def test_no_workspace_tree_is_null(self, client):
        assert client.get("/api/workspace").json() == {"rootFolder": None}
        assert client.get("/api/files").json() == {"rootFolder": None}

    def test_select_creates_missing_dir_inside_data_root(self, client, data_dir):
        response = client.post("/api/workspace/select", json={"path": str(data_dir / "ws")})
        assert response.status_code == 200
        body = response.json()
        assert body["workspacePath"] == str(data_dir / "ws")
        assert body["rootFolder"]["kind"] == "folder"
        assert body["rootFolder"]["name"] == "ws"
        assert body["rootFolder"]["parentPath"] == ""
        assert body["rootFolder"]["isExpanded"] is True
        assert (data_dir / "ws").is_dir()

    def test_select_outside_data_root(self, client, data_dir, caplog):
        with caplog.at_level(logging.WARNING, logger="excaliweb.security"):
            response = client.post("/api/workspace/select", json={"path": f"{data_dir}/../etc"})
        assert response.status_code == 403
        assert response.json()["error"] == "path_escape"
        assert any(r.name == "excaliweb.security" for r in caplog.records)
        assert client.get("/api/workspace").json() == {"rootFolder": None}

    def test_select_requires_path(self, client):
        assert client.post("/api/workspace/select", json={"path": ""}).status_code == 422
        assert client.post("/api/workspace/select", json={}).status_code == 422

    def test_select_rate_limited(self, client, data_dir, monkeypatch):
        monkeypatch.setattr(app_settings, "select_rate_limit", "2/minute")
        body = {"path": str(data_dir)}
        assert client.post("/api/workspace/select", json=body).status_code == 200
        assert client.post("/api/workspace/select", json=body).status_code == 200
        assert client.post("/api/workspace/select", json=body).status_code == 429

    def test_default_workspace_disabled(self, client):
        assert client.get("/api/workspace/default").json() == {"enabled": False}


class TestFileRoutes:
    """Document and folder CRUD through identifiers."""

    def test_create_read_save_rename_delete(self, workspace_client, data_dir):
        client = workspace_client

        folder = client.post("/api/files/folder", json={"name": "sub", "parentPath": "ws"}).json()["folder"]
        assert folder == {
            "kind": "folder",
            "name": "sub",
            "path": "ws/sub",
            "parentPath": "ws",
            "children": [],
            "isExpanded": False,
        }

        created = client.post("/api/files", json={"name": "draw", "parentPath": "ws/sub"}).json()
        assert created["file"] == {
            "kind": "file",
            "name": "draw",
            "path": "ws/sub/draw.excalidraw",
            "parentPath": "ws/sub",
        }
        file_id = created["fileId"]
        assert file_id == encode_file_id("ws/sub/draw.excalidraw")

        tree = client.get("/api/files").json()["rootFolder"]
        assert len(tree["children"]) == 1
        assert tree["children"][0]["name"] == "sub"
        assert len(tree["children"][0]["children"]) == 1
        assert tree["children"][0]["children"][0]["name"] == "draw"

        content = client.get(f"/api/files/{file_id}").json()["content"]
        assert content == document_to_dict(new_document())

        content["elements"] = [{"type": "ellipse", "id": "e1"}]
        saved = client.put(f"/api/files/{file_id}", json={"content": content})
        assert saved.json() == {"success": True}
        assert client.get(f"/api/files/{file_id}").json()["content"]["elements"] == [
            {"type": "ellipse", "id": "e1"}
        ]

        renamed = client.patch(f"/api/files/{file_id}/rename", json={"newName": "renamed"}).json()
        assert renamed["file"]["path"] == "ws/sub/renamed.excalidraw"
        assert renamed["fileId"] == encode_file_id("ws/sub/renamed.excalidraw")
        assert client.get(f"/api/files/{file_id}").status_code == 404

        assert client.delete(f"/api/files/{renamed['fileId']}").json() == {"success": True}
        assert not (data_dir / "ws" / "sub" / "renamed.excalidraw").exists()

        folder_id = encode_file_id("ws/sub")
        assert client.delete(f"/api/files/folder/{folder_id}").json() == {"success": True}
        assert not (data_dir / "ws" / "sub").exists()

    def test_create_at_root_with_empty_parent(self, workspace_client, data_dir):
        created = workspace_client.post("/api/files", json={"name": "Foo", "parentPath": ""}).json()
        assert created["file"]["parentPath"] == "ws"
        assert (data_dir / "ws" / "Foo.excalidraw").is_file()
        content = workspace_client.get(f"/api/files/{created['fileId']}").json()["content"]
        assert content == document_to_dict(new_document())

    def test_create_existing(self, workspace_client):
        workspace_client.post("/api/files", json={"name": "Foo", "parentPath": "ws"})
        response = workspace_client.post("/api/files", json={"name": "Foo", "parentPath": "ws"})
        assert response.status_code == 409
        assert response.json()["error"] == "already_exists"

    def test_create_requires_name(self, workspace_client):
        response = workspace_client.post("/api/files", json={"name": "", "parentPath": "ws"})
        assert response.status_code == 422

    def test_rename_collision(self, workspace_client, data_dir):
        a = workspace_client.post("/api/files", json={"name": "a", "parentPath": "ws"}).json()
        workspace_client.post("/api/files", json={"name": "b", "parentPath": "ws"})
        response = workspace_client.patch(f"/api/files/{a['fileId']}/rename", json={"newName": "b"})
        assert response.status_code == 409
        assert (data_dir / "ws" / "a.excalidraw").exists()
        assert (data_dir / "ws" / "b.excalidraw").exists()

    def test_delete_workspace_root_forbidden(self, workspace_client, data_dir):
        response = workspace_client.delete(f"/api/files/folder/{encode_file_id('ws')}")
        assert response.status_code == 403
        assert response.json()["error"] == "root_deletion_forbidden"
        assert (data_dir / "ws").is_dir()

    def test_malformed_identifier(self, workspace_client):
        response = workspace_client.get("/api/files/abcde")
        assert response.status_code == 400
        assert response.json()["error"] == "malformed_identifier"

    def test_traversal_identifier(self, workspace_client, caplog):
        file_id = encode_file_id("ws/../../secret.excalidraw")
        with caplog.at_level(logging.WARNING, logger="excaliweb.security"):
            response = workspace_client.get(f"/api/files/{file_id}")
        assert response.status_code == 403
        assert response.json()["error"] == "path_escape"
        assert any(r.name == "excaliweb.security" for r in caplog.records)

    def test_not_found(self, workspace_client):
        response = workspace_client.get(f"/api/files/{encode_file_id('ws/nope.excalidraw')}")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "File not found: ws/nope.excalidraw"}

    def test_corrupt_document(self, workspace_client, data_dir):
        (data_dir / "ws" / "bad.excalidraw").write_text("{oops")
        response = workspace_client.get(f"/api/files/{encode_file_id('ws/bad.excalidraw')}")
        assert response.status_code == 422
        assert response.json()["error"] == "corrupt_document"

    def test_save_requires_content(self, workspace_client):
        workspace_client.post("/api/files", json={"name": "a", "parentPath": "ws"})
        response = workspace_client.put(f"/api/files/{encode_file_id('ws/a.excalidraw')}", json={})
        assert response.status_code == 422

    def test_unclassified_filesystem_error(self, workspace_client, data_dir):
        (data_dir / "ws" / "dir.excalidraw").mkdir()
        response = workspace_client.put(
            f"/api/files/{encode_file_id('ws/dir.excalidraw')}",
            json={"content": document_to_dict(new_document())},
        )
        assert response.status_code == 500
        assert response.json()["error"] == "operation_failed"
        assert "Traceback" not in response.text

    def test_no_workspace_selected(self, client):
        response = client.post("/api/files", json={"name": "a", "parentPath": ""})
        assert response.status_code == 409
        assert response.json()["error"] == "no_workspace_selected"

    def test_workspace_removed_from_disk(self, workspace_client, data_dir):
        (data_dir / "ws").rmdir()
        response = workspace_client.get("/api/files")
        assert response.status_code == 404
        assert response.json()["error"] == "workspace_missing"


class TestFilesystemRoutes:
    """Directory browsing confined to the data directory."""

    def test_list_defaults_to_data_dir(self, client, data_dir):
        (data_dir / "projects").mkdir()
        body = client.get("/api/filesystem/list").json()
        assert body["currentPath"] == str(data_dir)
        assert body["parentPath"] is None
        assert [d["name"] for d in body["directories"]] == ["projects"]
        assert body["directories"][0]["isAccessible"] is True

    def test_list_outside_data_dir(self, client, tmp_path):
        response = client.get("/api/filesystem/list", params={"path": str(tmp_path)})
        assert response.status_code == 403
        assert response.json()["error"] == "path_escape"

    def test_home_and_common(self, client, data_dir):
        assert client.get("/api/filesystem/home").json() == {"path": str(data_dir)}
        assert client.get("/api/filesystem/common").json() == {
            "directories": [{"name": "Data Directory", "path": str(data_dir)}]
        }


class TestServiceRoutes:
    """Settings, health and default-workspace startup."""

    def test_public_settings(self, client, data_dir):
        assert client.get("/api/settings").json() == {
            "defaultWorkspace": False,
            "dataDir": str(data_dir),
        }

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"server": "ok", "workspace": "not configured", "dataDir": "ok"}

    def test_health_data_dir_missing(self, tmp_path):
        app = create_app(Settings(data_dir=str(tmp_path / "missing"), default_workspace=False))
        with TestClient(app) as client:
            response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["dataDir"] == "inaccessible"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "ExcaliWeb API"

    def test_default_workspace_startup(self, tmp_path):
        data = tmp_path / "data"
        app = create_app(Settings(data_dir=str(data), default_workspace=True))
        with TestClient(app) as client:
            assert client.get("/api/workspace/default").json() == {
                "enabled": True,
                "path": str(data),
                "name": "data",
                "dataDir": str(data),
            }
            tree = client.get("/api/workspace").json()["rootFolder"]
            assert tree["name"] == "data"
            assert [c["name"] for c in tree["children"]] == ["Welcome"]
            assert client.get("/health").json()["workspace"] == "ok"

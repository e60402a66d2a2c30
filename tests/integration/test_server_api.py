"""
Integration tests for the snapshot server routes.

Requests go through httpx.ASGITransport into the FastAPI app, so the
routing, status codes and JSON bodies are exercised end to end.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from cineshelf.core.config import ShelfConfig
from cineshelf.server import app as server_module
from conftest import make_snapshot


@pytest.fixture
def client(asgi_transport):
    return AsyncClient(transport=asgi_transport, base_url="http://test")


@pytest.mark.asyncio
async def test_health(client):
    async with client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_backup_then_restore(client):
    async with client:
        saved = await client.post("/backup", json=make_snapshot(user="alice"))
        restored = await client.get("/restore", params={"user": "alice"})

    assert saved.status_code == 200
    body = saved.json()
    assert body["success"] is True
    assert body["filename"] == "cineshelf_backup_alice.json"

    assert restored.status_code == 200
    payload = restored.json()
    assert payload["copies"][0]["id"] == "copy_1"
    assert payload["_restoreMetadata"]["filenameUsed"] == "cineshelf_backup_alice.json"


@pytest.mark.asyncio
async def test_backup_requires_user(client):
    payload = make_snapshot(user="!!")
    async with client:
        response = await client.post("/backup", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "User parameter required"


@pytest.mark.asyncio
async def test_backup_rejects_invalid_json(client):
    async with client:
        response = await client.post(
            "/backup", content=b"{nope", headers={"Content-Type": "application/json"}
        )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON data"


@pytest.mark.asyncio
async def test_backup_rejects_bad_snapshot(client):
    async with client:
        response = await client.post("/backup", json={"user": "alice", "copies": 3})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid backup data")


@pytest.mark.asyncio
async def test_restore_requires_user(client):
    async with client:
        response = await client.get("/restore")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_restore_unknown_user_lists_backups(client):
    async with client:
        await client.post("/backup", json=make_snapshot(user="bob"))
        response = await client.get("/restore", params={"user": "alice"})

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "No backup found for this user"
    assert [b["filename"] for b in body["availableBackups"]] == [
        "cineshelf_backup_bob.json"
    ]
    assert "suggestion" in body


@pytest.mark.asyncio
async def test_restore_forced_file(client):
    async with client:
        await client.post("/backup", json=make_snapshot(user="bob"))
        found = await client.get(
            "/restore", params={"user": "alice", "file": "cineshelf_backup_bob.json"}
        )
        missing = await client.get(
            "/restore", params={"user": "alice", "file": "cineshelf_backup_zed.json"}
        )

    assert found.status_code == 200
    assert found.json()["_restoreMetadata"]["fileForced"] is True
    assert missing.status_code == 404
    assert missing.json() == {
        "error": "Specified file not found",
        "file": "cineshelf_backup_zed.json",
    }


@pytest.mark.asyncio
async def test_restore_post_body(client):
    async with client:
        await client.post("/backup", json=make_snapshot(user="alice"))
        response = await client.post("/restore", json={"user": "alice"})
    assert response.status_code == 200
    assert response.json()["user"] == "alice"


@pytest.mark.asyncio
async def test_list_backups(client):
    async with client:
        await client.post("/backup", json=make_snapshot(user="alice"))
        response = await client.get("/backups")
    assert response.status_code == 200
    assert [b["userPart"] for b in response.json()["backups"]] == ["alice"]


class TestDefaultApp:
    def test_no_app_built_at_import(self):
        assert not hasattr(server_module, "app")

    def test_uses_configured_paths(self, tmp_path, monkeypatch):
        config = ShelfConfig(storage_dir=tmp_path / "blobs", log_dir=tmp_path / "logs")
        monkeypatch.setattr(server_module, "load_config", lambda: config)

        app = server_module.default_app()
        app.state.logger.close()

        assert app.state.repository.storage_dir == tmp_path / "blobs"
        assert (tmp_path / "logs" / "server" / "server.log").exists()

    @pytest.mark.asyncio
    async def test_serves_from_configured_storage(self, tmp_path, monkeypatch):
        config = ShelfConfig(storage_dir=tmp_path / "blobs", log_dir=tmp_path / "logs")
        monkeypatch.setattr(server_module, "load_config", lambda: config)
        app = server_module.default_app()

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/backup", json=make_snapshot(user="alice"))
        app.state.logger.close()

        assert response.status_code == 200
        assert (tmp_path / "blobs" / "cineshelf_backup_alice.json").exists()

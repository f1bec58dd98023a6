"""End-to-end note lifecycle against the local SQLite backend and dev token."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.noteify.api.main import app
from backend.noteify.api.middleware import get_auth_service
from backend.noteify.services.config import reload_config
from backend.noteify.services.database import init_database

TOKEN = "lifecycle-token"
HEADERS = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "lifecycle.db"))
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "true")
    monkeypatch.setenv("LOCAL_DEV_TOKEN", TOKEN)
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://notes.example.com")
    config = reload_config()
    get_auth_service.cache_clear()
    init_database(config.database_path)
    app.dependency_overrides = {}

    yield TestClient(app)

    monkeypatch.undo()
    reload_config()
    get_auth_service.cache_clear()


@pytest.mark.integration
def test_unknown_token_is_rejected(client: TestClient) -> None:
    response = client.get("/api/notes", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


@pytest.mark.integration
def test_create_share_and_delete(client: TestClient) -> None:
    me = client.get("/api/me", headers=HEADERS)
    assert me.status_code == 200
    assert me.json()["profile"]["onboarded"] is False

    onboarded = client.post(
        "/api/onboarding",
        json={"agreed_to_terms": True, "wants_updates": True},
        headers=HEADERS,
    )
    assert onboarded.json()["onboarded"] is True

    created = client.post(
        "/api/notes",
        json={"title": "Groceries", "content": "- **milk**\n- eggs", "categories": ["Home"]},
        headers=HEADERS,
    )
    assert created.status_code == 201
    note_id = created.json()["id"]

    listing = client.get("/api/notes", params={"q": "MILK"}, headers=HEADERS)
    assert [n["id"] for n in listing.json()] == [note_id]

    assert client.get(f"/api/share/{note_id}").status_code == 404

    shared = client.post(f"/api/notes/{note_id}/share", headers=HEADERS)
    assert shared.status_code == 200
    assert shared.json()["share_url"] == f"https://notes.example.com/share/{note_id}"

    public = client.get(f"/api/share/{note_id}")
    assert public.status_code == 200
    assert public.json()["html"] == "<ul><li><strong>milk</strong></li><li>eggs</li></ul>"

    page = client.get(f"/share/{note_id}")
    assert "Groceries" in page.text

    assert client.delete(f"/api/notes/{note_id}", headers=HEADERS).status_code == 204
    assert client.get(f"/api/share/{note_id}").status_code == 404
    assert client.get(f"/api/notes/{note_id}", headers=HEADERS).status_code == 404

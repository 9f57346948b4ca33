"""HTTP API tests against an in-memory local store."""

import pytest
from fastapi.testclient import TestClient
from notekeeper.context import AppContext
from notekeeper.main import create_app
from notekeeper.storage import LocalStorage
from tests.test_utils import make_settings


@pytest.fixture
def client():
    settings = make_settings(AUTOSAVE_DELAY=0.05, SEARCH_DELAY=0.02)
    app = create_app(settings, context=AppContext(settings, storage=LocalStorage()))
    with TestClient(app) as client:
        yield client


def create_notebook(client, name="Work"):
    response = client.post("/api/v1/notebooks/", json={"name": name})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_notebook_lifecycle(client):
    notebook = create_notebook(client)

    listing = client.get("/api/v1/notebooks/").json()
    assert [nb["id"] for nb in listing["notebooks"]] == [notebook["id"]]

    assert client.patch(f"/api/v1/notebooks/{notebook['id']}", json={"name": "Job"}).status_code == 200
    assert client.get(f"/api/v1/notebooks/{notebook['id']}").json()["name"] == "Job"

    assert client.delete(f"/api/v1/notebooks/{notebook['id']}").status_code == 200
    assert client.get(f"/api/v1/notebooks/{notebook['id']}").status_code == 404


def test_empty_notebook_name_is_rejected(client):
    assert client.post("/api/v1/notebooks/", json={"name": ""}).status_code == 422

    notebook = create_notebook(client)
    response = client.patch(f"/api/v1/notebooks/{notebook['id']}", json={"name": "  "})
    assert response.status_code == 422
    assert "must not be empty" in response.json()["detail"]


def test_note_lifecycle(client):
    notebook = create_notebook(client)

    created = client.post(f"/api/v1/notebooks/{notebook['id']}/notes", json={}).json()
    assert created["title"] == "Untitled Note"
    assert created["content"] == ""

    response = client.patch(f"/api/v1/notes/{created['id']}", json={"content": "Hello"})
    assert response.status_code == 200

    note = client.get(f"/api/v1/notes/{created['id']}").json()
    assert note["title"] == "Untitled Note"
    assert note["content"] == "Hello"

    notes = client.get(f"/api/v1/notebooks/{notebook['id']}/notes").json()["notes"]
    assert [n["id"] for n in notes] == [created["id"]]

    assert client.delete(f"/api/v1/notes/{created['id']}").status_code == 200
    assert client.get(f"/api/v1/notes/{created['id']}").status_code == 404


def test_missing_resources_are_404(client):
    assert client.get("/api/v1/notes/missing").status_code == 404
    assert client.patch("/api/v1/notes/missing", json={"title": "x"}).status_code == 404
    assert client.post("/api/v1/notebooks/missing/notes", json={}).status_code == 404


def test_move_note_to_unknown_notebook_is_404(client):
    notebook = create_notebook(client)
    note = client.post(f"/api/v1/notebooks/{notebook['id']}/notes", json={"title": "T"}).json()

    response = client.patch(f"/api/v1/notes/{note['id']}", json={"notebook_id": "missing"})

    assert response.status_code == 404


def test_delete_notebook_removes_its_notes(client):
    notebook = create_notebook(client)
    note = client.post(f"/api/v1/notebooks/{notebook['id']}/notes", json={"title": "T"}).json()

    client.delete(f"/api/v1/notebooks/{notebook['id']}")

    assert client.get(f"/api/v1/notes/{note['id']}").status_code == 404


def test_search(client):
    notebook = create_notebook(client)
    client.post(f"/api/v1/notebooks/{notebook['id']}/notes", json={"title": "Grocery", "content": "milk"})
    client.post(f"/api/v1/notebooks/{notebook['id']}/notes", json={"title": "Other", "content": "MILKSHAKE"})
    client.post(f"/api/v1/notebooks/{notebook['id']}/notes", json={"title": "Nothing"})

    results = client.get("/api/v1/search", params={"q": "milk"}).json()["notes"]
    assert {n["title"] for n in results} == {"Grocery", "Other"}

    assert client.get("/api/v1/search", params={"q": ""}).json()["notes"] == []


def test_image_upload_inlines_in_local_mode(client):
    response = client.post(
        "/api/v1/images",
        params={"filename": "pic.png"},
        content=b"\x89PNG\r\n",
        headers={"Content-Type": "application/octet-stream"},
    )

    assert response.status_code == 200
    url = response.json()["url"]
    assert url.startswith("data:image/png;base64,")
    assert client.delete("/api/v1/images", params={"url": url}).status_code == 200


def test_empty_image_body_is_rejected(client):
    response = client.post("/api/v1/images", params={"filename": "pic.png"}, content=b"")

    assert response.status_code == 400


def test_storage_info_reports_local_only(client):
    info = client.get("/api/v1/storage").json()

    assert info == {"kind": "local", "local_only": True, "path": None}

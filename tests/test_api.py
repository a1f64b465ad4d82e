"""
Integration tests for the HTTP surface.

Uses an in-memory backend (see conftest) so tests do not require a Gemini API key.
"""

from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from storechat.backend.types import FileState, GenerationResult, Operation
from storechat.core.config import Settings
from storechat.core.errors import BackendError
from storechat.main import create_app

ENDPOINTS = [
    ("get", "/stores", {}),
    ("post", "/stores", {"json": {"displayName": "x"}}),
    ("get", "/stores/fileSearchStores/abc", {}),
    ("delete", "/stores/fileSearchStores/abc", {}),
    ("get", "/files", {}),
    ("post", "/files", {"files": {"file": ("a.txt", b"hello", "text/plain")}}),
    ("delete", "/files?name=files/abc", {}),
    ("delete", "/files/files/abc", {}),
    ("post", "/chat", {"json": {"message": "hi", "history": []}}),
]


# --- Credentials ---

@pytest.mark.parametrize("method,path,kwargs", ENDPOINTS)
def test_missing_credential_is_401_with_zero_backend_calls(
    client: TestClient, backend, factory_keys, method, path, kwargs
) -> None:
    response = getattr(client, method)(path, **kwargs)
    assert response.status_code == 401
    assert response.json() == {"error": "API key required"}
    assert backend.calls == []
    assert factory_keys == []


def test_header_credential_is_forwarded(client: TestClient, factory_keys, auth) -> None:
    assert client.get("/stores", headers=auth).status_code == 200
    assert factory_keys == ["test-key"]


def test_server_fallback_credential_is_used(settings: Settings, backend) -> None:
    keys: list[str] = []
    fallback = replace(settings, fallback_api_key="server-key")
    app = create_app(fallback, backend_factory=lambda k: keys.append(k) or backend)
    client = TestClient(app)
    assert client.get("/stores").status_code == 200
    assert client.get("/stores", headers={"x-gemini-api-key": "override"}).status_code == 200
    assert keys == ["server-key", "override"]


def test_health_needs_no_credential(client: TestClient) -> None:
    assert client.get("/health").json() == {"ok": True}


# --- Stores ---

def test_list_stores_empty(client: TestClient, auth) -> None:
    response = client.get("/stores", headers=auth)
    assert response.status_code == 200
    assert response.json() == {"fileSearchStores": []}


def test_create_store_twice_gives_two_ids(client: TestClient, auth) -> None:
    one = client.post("/stores", json={"displayName": "Manuals"}, headers=auth).json()
    two = client.post("/stores", json={"displayName": "Manuals"}, headers=auth).json()
    assert one["name"] != two["name"]
    assert one["displayName"] == two["displayName"] == "Manuals"


def test_create_store_without_body_uses_default_name(client: TestClient, auth) -> None:
    response = client.post("/stores", headers=auth)
    assert response.status_code == 200
    assert response.json()["displayName"] == "New Store"


def test_get_and_delete_store_by_path(client: TestClient, auth) -> None:
    name = client.post("/stores", json={"displayName": "x"}, headers=auth).json()["name"]
    assert client.get(f"/stores/{name}", headers=auth).json()["name"] == name
    assert client.delete(f"/stores/{name}", headers=auth).json() == {"success": True}
    second = client.delete(f"/stores/{name}", headers=auth)
    assert second.status_code == 500
    assert second.json() == {"error": f"{name} not found"}


def test_get_missing_store_is_500_with_not_found_message(client: TestClient, auth) -> None:
    response = client.get("/stores/fileSearchStores/ghost", headers=auth)
    assert response.status_code == 500
    assert response.json() == {"error": "fileSearchStores/ghost not found"}


def test_backend_failure_is_500_with_message(client: TestClient, backend, auth) -> None:
    backend.failures["list_stores"] = BackendError("quota exceeded", code=429)
    response = client.get("/stores", headers=auth)
    assert response.status_code == 500
    assert response.json() == {"error": "quota exceeded"}


# --- Files ---

def test_upload_without_store(client: TestClient, backend, staging_dir: Path, auth) -> None:
    response = client.post("/files", files={"file": ("notes.txt", b"hello", "text/plain")}, headers=auth)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["file"]["name"].startswith("files/")
    assert body["storeId"] is None
    assert list(staging_dir.iterdir()) == []
    assert "import_file" not in backend.calls


def test_upload_report_pdf_into_store(client: TestClient, backend, staging_dir: Path, auth) -> None:
    store = client.post("/stores", json={"displayName": "docs"}, headers=auth).json()["name"]
    backend.operation_script = [Operation(name="operations/import-1", done=True)]
    payload = b"%PDF" + b"\0" * (2 * 1024 * 1024)

    response = client.post(
        "/files",
        files={"file": ("report.pdf", payload, "application/pdf")},
        data={"storeId": store},
        headers=auth,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "ACTIVE"
    assert body["storeId"] == store
    assert body["message"] == "File uploaded and associated"
    assert backend.count("get_operation") == 1
    assert backend.staged_bytes[0] == payload
    assert list(staging_dir.iterdir()) == []


def test_upload_failed_indexing_is_500(client: TestClient, backend, staging_dir: Path, auth) -> None:
    store = client.post("/stores", json={"displayName": "docs"}, headers=auth).json()["name"]
    backend.final_state = FileState.FAILED
    response = client.post("/files", files={"file": ("a.txt", b"x", "text/plain")}, data={"storeId": store}, headers=auth)
    assert response.status_code == 500
    assert "Indexing failed" in response.json()["error"]
    assert list(staging_dir.iterdir()) == []


def test_upload_indexing_timeout_is_500(settings: Settings, backend, staging_dir: Path, auth) -> None:
    client = TestClient(create_app(replace(settings, max_wait=0.0), backend_factory=lambda k: backend))
    store = client.post("/stores", json={"displayName": "docs"}, headers=auth).json()["name"]
    response = client.post("/files", files={"file": ("a.txt", b"x", "text/plain")}, data={"storeId": store}, headers=auth)
    assert response.status_code == 500
    assert "did not finish" in response.json()["error"]
    assert list(staging_dir.iterdir()) == []


def test_upload_without_file_is_400(client: TestClient, backend, auth) -> None:
    response = client.post("/files", data={"storeId": "fileSearchStores/x"}, headers=auth)
    assert response.status_code == 400
    assert response.json() == {"error": "No file provided"}
    assert backend.calls == []


def test_upload_unknown_mime_defaults_to_text(client: TestClient, backend, auth) -> None:
    client.post("/files", files={"file": ("data.unknownext", b"x", "application/octet-stream")}, headers=auth)
    assert backend.upload_args[0]["mime_type"] == "text/plain"


def test_list_files(client: TestClient, auth) -> None:
    client.post("/files", files={"file": ("a.txt", b"x", "text/plain")}, headers=auth)
    files = client.get("/files", headers=auth).json()["files"]
    assert len(files) == 1
    assert files[0]["displayName"] == "a.txt"
    assert files[0]["mimeType"] == "text/plain"


def test_list_files_with_store_id(client: TestClient, backend, auth) -> None:
    store = client.post("/stores", json={"displayName": "docs"}, headers=auth).json()["name"]
    client.post("/files", files={"file": ("a.txt", b"x", "text/plain")}, data={"storeId": store}, headers=auth)
    files = client.get("/files", params={"storeId": store}, headers=auth).json()["files"]
    assert [f["displayName"] for f in files] == ["a.txt"]
    assert "list_store_documents" in backend.calls


def test_delete_file_by_query_and_missing(client: TestClient, auth) -> None:
    name = client.post("/files", files={"file": ("a.txt", b"x", "text/plain")}, headers=auth).json()["file"]["name"]
    assert client.delete("/files", params={"name": name}, headers=auth).json() == {"success": True}
    again = client.delete("/files", params={"name": name}, headers=auth)
    assert again.status_code == 500
    assert again.json() == {"error": f"{name} not found"}


def test_delete_file_without_name_is_400(client: TestClient, auth) -> None:
    response = client.delete("/files", headers=auth)
    assert response.status_code == 400
    assert response.json() == {"error": "File name required"}


# --- Chat ---

def test_chat_without_store(client: TestClient, backend, auth) -> None:
    response = client.post("/chat", json={"message": "hello", "history": []}, headers=auth)
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"role", "content", "citations", "groundingMetadata"}
    assert body["role"] == "model"
    assert body["content"] == "ok"
    assert body["citations"] == []
    assert backend.generate_args[0]["store_name"] is None
    assert backend.generate_args[0]["model"] == "gemini-test"


def test_chat_grounded_in_store(client: TestClient, backend, auth) -> None:
    backend.generation = GenerationResult(
        text="X contains...",
        grounding_metadata={
            "groundingChunks": [{"retrievedContext": {"text": "X contains a pump manual.", "title": "x.pdf"}}]
        },
    )
    response = client.post(
        "/chat",
        json={
            "message": "what's in doc X?",
            "history": [{"role": "user", "content": "hi"}],
            "storeId": "store/abc",
        },
        headers=auth,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["content"] == "X contains..."
    assert body["citations"] == [
        {"snippetText": "X contains a pump manual.", "sourceUri": None, "sourceTitle": "x.pdf"}
    ]
    assert body["groundingMetadata"]["groundingChunks"][0]["retrievedContext"]["title"] == "x.pdf"
    assert backend.generate_args[0]["store_name"] == "store/abc"


def test_chat_generation_failure_is_500(client: TestClient, backend, auth) -> None:
    backend.failures["generate"] = BackendError("Resource exhausted", code=429)
    response = client.post("/chat", json={"message": "hello"}, headers=auth)
    assert response.status_code == 500
    assert response.json() == {"error": "Resource exhausted"}


def test_chat_missing_message_is_400(client: TestClient, backend, auth) -> None:
    response = client.post("/chat", json={"history": []}, headers=auth)
    assert response.status_code == 400
    assert "message" in response.json()["error"]
    assert "generate" not in backend.calls

"""
Shared fixtures: an in-memory IndexBackend that records every call, and an app wired to it.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from storechat.backend.types import FileState, GenerationResult, Operation, RemoteFile, Store
from storechat.core.config import Settings
from storechat.core.errors import ServiceError, not_found
from storechat.main import create_app


class FakeBackend:
    """IndexBackend double. `calls` lists method names in call order."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.stores: dict[str, Store] = {}
        self.files: dict[str, RemoteFile] = {}
        self.documents: dict[str, list[RemoteFile]] = {}
        self.failures: dict[str, ServiceError] = {}
        # successive get_operation results; once exhausted the operation reports done
        self.operation_script: list[Operation] = []
        self.import_done = False
        self.final_state = FileState.ACTIVE
        self.generation = GenerationResult(text="ok")
        self.generate_args: list[dict] = []
        self.staged_paths: list[Path] = []
        self.staged_bytes: list[bytes] = []
        self.upload_args: list[dict] = []
        self._counter = 0

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    def _next_id(self) -> int:
        self._counter += 1
        return self._counter

    def count(self, method: str) -> int:
        return self.calls.count(method)

    # --- stores ---

    def list_stores(self):
        self._record("list_stores")
        yield from list(self.stores.values())

    def create_store(self, display_name: str) -> Store:
        self._record("create_store")
        name = f"fileSearchStores/store-{self._next_id()}"
        store = Store(resource_name=name, display_name=display_name, create_time="2026-01-01T00:00:00+00:00")
        self.stores[name] = store
        return store

    def get_store(self, name: str) -> Store:
        self._record("get_store")
        if name not in self.stores:
            raise not_found(f"{name} not found")
        return self.stores[name]

    def delete_store(self, name: str, force: bool = True) -> None:
        self._record("delete_store")
        if name not in self.stores:
            raise not_found(f"{name} not found")
        del self.stores[name]
        self.documents.pop(name, None)

    def list_store_documents(self, store_name: str):
        self._record("list_store_documents")
        if store_name not in self.stores and store_name not in self.documents:
            raise not_found(f"{store_name} not found")
        yield from list(self.documents.get(store_name, []))

    # --- files ---

    def list_files(self, page_size: int):
        self._record("list_files")
        yield from list(self.files.values())

    def upload_file(self, path: Path, display_name: str, mime_type: str) -> RemoteFile:
        self.staged_paths.append(path)
        self.staged_bytes.append(path.read_bytes())
        self.upload_args.append({"display_name": display_name, "mime_type": mime_type})
        self._record("upload_file")
        name = f"files/file-{self._next_id()}"
        remote = RemoteFile(
            resource_name=name,
            display_name=display_name,
            mime_type=mime_type,
            size_bytes=len(self.staged_bytes[-1]),
            state=FileState.PROCESSING,
        )
        self.files[name] = remote
        return remote

    def get_file(self, name: str) -> RemoteFile:
        self._record("get_file")
        if name not in self.files:
            raise not_found(f"{name} not found")
        current = self.files[name]
        current.state = self.final_state
        return current

    def delete_file(self, name: str) -> None:
        self._record("delete_file")
        if name not in self.files:
            raise not_found(f"{name} not found")
        del self.files[name]

    def import_file(self, store_name: str, file_name: str) -> Operation:
        self._record("import_file")
        if store_name not in self.stores:
            raise not_found(f"{store_name} not found")
        self.documents.setdefault(store_name, []).append(self.files[file_name])
        return Operation(name="operations/import-1", done=self.import_done)

    def get_operation(self, operation: Operation) -> Operation:
        self._record("get_operation")
        if self.operation_script:
            return self.operation_script.pop(0)
        return Operation(name=operation.name, done=True)

    # --- generation ---

    def generate(self, model, contents, store_name=None) -> GenerationResult:
        self.generate_args.append({"model": model, "contents": contents, "store_name": store_name})
        self._record("generate")
        return self.generation


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def settings(staging_dir: Path) -> Settings:
    return Settings(
        fallback_api_key="",
        model="gemini-test",
        staging_dir=str(staging_dir),
        poll_interval=0.0,
        max_wait=5.0,
        max_upload_bytes=10 * 1024 * 1024,
    )


@pytest.fixture
def factory_keys() -> list[str]:
    """Credentials the app asked the backend factory for, in order."""
    return []


@pytest.fixture
def client(settings: Settings, backend: FakeBackend, factory_keys: list[str]) -> TestClient:
    def factory(api_key: str) -> FakeBackend:
        factory_keys.append(api_key)
        return backend

    return TestClient(create_app(settings, backend_factory=factory))


@pytest.fixture
def auth() -> dict[str, str]:
    return {"x-gemini-api-key": "test-key"}

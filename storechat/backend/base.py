"""
Contract the orchestration layer expects from the remote index backend.

Implementations raise ServiceError(NOT_FOUND) when the backend reports no such
resource and BackendError for any other failure.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Any, Callable, Protocol

from storechat.backend.types import GenerationResult, Operation, RemoteFile, Store


class IndexBackend(Protocol):
    def list_stores(self) -> Iterable[Store]: ...

    def create_store(self, display_name: str) -> Store: ...

    def get_store(self, name: str) -> Store: ...

    def delete_store(self, name: str, force: bool = True) -> None: ...

    def list_files(self, page_size: int) -> Iterable[RemoteFile]: ...

    def list_store_documents(self, store_name: str) -> Iterable[RemoteFile]: ...

    def upload_file(self, path: Path, display_name: str, mime_type: str) -> RemoteFile: ...

    def get_file(self, name: str) -> RemoteFile: ...

    def delete_file(self, name: str) -> None: ...

    def import_file(self, store_name: str, file_name: str) -> Operation: ...

    def get_operation(self, operation: Operation) -> Operation: ...

    def generate(
        self,
        model: str,
        contents: list[dict[str, Any]],
        store_name: str | None = None,
    ) -> GenerationResult: ...


# credential -> backend bound to that credential
BackendFactory = Callable[[str], IndexBackend]

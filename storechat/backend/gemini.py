"""
Gemini File Search backend: stores, files, long-running imports, and grounded generation.

Responsibility: Wrap the google-genai client and translate SDK objects and API
errors into domain types. No HTTP or FastAPI here.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx
from google import genai
from google.genai import errors, types

from storechat.backend.types import FileState, GenerationResult, Operation, RemoteFile, Store
from storechat.core.errors import BackendError, not_found

logger = logging.getLogger(__name__)

STORES_PAGE_SIZE = 20


def _iso(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def to_file_state(raw: Any) -> FileState:
    """
    Map an SDK file or document state to FileState.

    Files report PROCESSING/ACTIVE/FAILED, store documents STATE_PENDING/
    STATE_ACTIVE/STATE_FAILED; STATE_UNSPECIFIED and anything unknown is PENDING.
    """
    if raw is None:
        return FileState.PENDING
    name = str(getattr(raw, "name", raw)).upper()
    if name.startswith("STATE_"):
        name = name[len("STATE_"):]
    try:
        return FileState(name)
    except ValueError:
        return FileState.PENDING


def to_store(obj: Any) -> Store:
    return Store(
        resource_name=obj.name or "",
        display_name=obj.display_name or "",
        create_time=_iso(getattr(obj, "create_time", None)),
        update_time=_iso(getattr(obj, "update_time", None)),
        active_documents_count=_to_int(getattr(obj, "active_documents_count", None)),
        pending_documents_count=_to_int(getattr(obj, "pending_documents_count", None)),
        failed_documents_count=_to_int(getattr(obj, "failed_documents_count", None)),
        size_bytes=_to_int(getattr(obj, "size_bytes", None)),
    )


def to_remote_file(obj: Any) -> RemoteFile:
    """Convert a Files API file or a store document into a RemoteFile."""
    err = getattr(obj, "error", None)
    return RemoteFile(
        resource_name=obj.name or "",
        display_name=getattr(obj, "display_name", None) or "",
        mime_type=getattr(obj, "mime_type", None),
        size_bytes=_to_int(getattr(obj, "size_bytes", None)),
        create_time=_iso(getattr(obj, "create_time", None)),
        state=to_file_state(getattr(obj, "state", None)),
        uri=getattr(obj, "uri", None),
        error=(getattr(err, "message", None) or str(err)) if err else None,
    )


def to_operation(op: Any) -> Operation:
    err = getattr(op, "error", None)
    message = None
    if err:
        message = err.get("message") if isinstance(err, dict) else str(err)
        message = message or str(err)
    return Operation(name=getattr(op, "name", None), done=bool(getattr(op, "done", False)), error=message, handle=op)


@contextmanager
def _translate_errors(action: str, resource: str = "") -> Iterator[None]:
    """Re-raise google-genai API errors as NOT_FOUND or BackendError."""
    try:
        yield
    except errors.APIError as e:
        message = e.message or str(e)
        if e.code == 404:
            raise not_found(f"{resource or 'Resource'} not found") from e
        logger.warning("[gemini:%s] API error code=%s resource=%s: %s", action, e.code, resource, message)
        raise BackendError(message, code=e.code) from e
    except httpx.HTTPError as e:
        logger.warning("[gemini:%s] transport error resource=%s: %s", action, resource, e)
        raise BackendError(f"Backend unreachable: {e}") from e


class GeminiBackend:
    """IndexBackend implementation over google-genai. One instance per request credential."""

    def __init__(self, api_key: str, client: Any = None) -> None:
        self._client = client if client is not None else genai.Client(api_key=api_key)

    # --- Stores ---

    def list_stores(self) -> Iterator[Store]:
        with _translate_errors("list_stores"):
            for obj in self._client.file_search_stores.list(config={"page_size": STORES_PAGE_SIZE}):
                yield to_store(obj)

    def create_store(self, display_name: str) -> Store:
        with _translate_errors("create_store"):
            obj = self._client.file_search_stores.create(config={"display_name": display_name})
        return to_store(obj)

    def get_store(self, name: str) -> Store:
        with _translate_errors("get_store", name):
            obj = self._client.file_search_stores.get(name=name)
        return to_store(obj)

    def delete_store(self, name: str, force: bool = True) -> None:
        with _translate_errors("delete_store", name):
            self._client.file_search_stores.delete(name=name, config={"force": force})

    def list_store_documents(self, store_name: str) -> Iterator[RemoteFile]:
        with _translate_errors("list_store_documents", store_name):
            for doc in self._client.file_search_stores.documents.list(parent=store_name):
                yield to_remote_file(doc)

    # --- Files ---

    def list_files(self, page_size: int) -> Iterator[RemoteFile]:
        with _translate_errors("list_files"):
            for obj in self._client.files.list(config={"page_size": page_size}):
                yield to_remote_file(obj)

    def upload_file(self, path: Path, display_name: str, mime_type: str) -> RemoteFile:
        with _translate_errors("upload_file"):
            obj = self._client.files.upload(
                file=str(path),
                config={"display_name": display_name, "mime_type": mime_type},
            )
        return to_remote_file(obj)

    def get_file(self, name: str) -> RemoteFile:
        with _translate_errors("get_file", name):
            obj = self._client.files.get(name=name)
        return to_remote_file(obj)

    def delete_file(self, name: str) -> None:
        with _translate_errors("delete_file", name):
            self._client.files.delete(name=name)

    # --- Long-running import ---

    def import_file(self, store_name: str, file_name: str) -> Operation:
        with _translate_errors("import_file", store_name):
            op = self._client.file_search_stores.import_file(
                file_search_store_name=store_name,
                file_name=file_name,
            )
        return to_operation(op)

    def get_operation(self, operation: Operation) -> Operation:
        with _translate_errors("get_operation", operation.name or ""):
            op = self._client.operations.get(operation.handle)
        return to_operation(op)

    # --- Generation ---

    def generate(
        self,
        model: str,
        contents: list[dict[str, Any]],
        store_name: str | None = None,
    ) -> GenerationResult:
        try:
            tools = []
            if store_name:
                tools.append(types.Tool(file_search=types.FileSearch(file_search_store_names=[store_name])))
            with _translate_errors("generate", store_name or ""):
                response = self._client.models.generate_content(
                    model=model,
                    contents=contents,
                    config=types.GenerateContentConfig(tools=tools),
                )
            grounding = None
            candidates = response.candidates or []
            if candidates and candidates[0].grounding_metadata is not None:
                grounding = candidates[0].grounding_metadata.model_dump(mode="json", by_alias=True, exclude_none=True)
            return GenerationResult(text=response.text or "", grounding_metadata=grounding)
        except (ValueError, TypeError) as e:
            # request or response the SDK could not build or parse
            logger.warning("[gemini:generate] invalid request or response store=%s: %s", store_name or "-", e)
            raise BackendError(f"Generation failed: {e}") from e


def gemini_backend_factory(api_key: str) -> GeminiBackend:
    return GeminiBackend(api_key)

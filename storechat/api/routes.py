"""
API route aggregator: register endpoints and delegate to handlers and services.
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from storechat.api.deps import get_backend, get_settings
from storechat.api.handlers import handle_chat, handle_upload
from storechat.backend.base import IndexBackend
from storechat.core.config import Settings
from storechat.schemas.chat import ChatRequest, ChatResponse
from storechat.schemas.common import ErrorResponse, SuccessResponse
from storechat.schemas.files import FileListResponse, FileOut, UploadResponse
from storechat.schemas.stores import CreateStoreRequest, StoreListResponse, StoreOut
from storechat.services import file_service, store_service

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Bad input"},
        401: {"model": ErrorResponse, "description": "No API key in header or server config"},
        500: {"model": ErrorResponse, "description": "Backend or internal failure"},
    }
)


# --- System ---

@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Stores ---

@router.get("/stores", response_model=StoreListResponse, tags=["stores"], summary="List file search stores")
def list_stores(backend: IndexBackend = Depends(get_backend)) -> StoreListResponse:
    stores = store_service.list_stores(backend)
    return StoreListResponse(file_search_stores=[StoreOut.from_store(s) for s in stores])


@router.post(
    "/stores",
    response_model=StoreOut,
    tags=["stores"],
    summary="Create a file search store",
    description="Always creates a new store, even when the display name is already in use.",
)
def create_store(
    body: CreateStoreRequest | None = None,
    backend: IndexBackend = Depends(get_backend),
) -> StoreOut:
    store = store_service.create_store(backend, body.display_name if body else None)
    return StoreOut.from_store(store)


@router.get("/stores/{store_id:path}", response_model=StoreOut, tags=["stores"], summary="Get one store")
def get_store(store_id: str, backend: IndexBackend = Depends(get_backend)) -> StoreOut:
    return StoreOut.from_store(store_service.get_store(backend, store_id))


@router.delete(
    "/stores/{store_id:path}",
    response_model=SuccessResponse,
    tags=["stores"],
    summary="Delete a store",
    description="Force-deletes the store's documents too. Fails with an error if the store does not exist.",
)
def delete_store(store_id: str, backend: IndexBackend = Depends(get_backend)) -> SuccessResponse:
    store_service.delete_store(backend, store_id)
    return SuccessResponse()


# --- Files ---

@router.get("/files", response_model=FileListResponse, tags=["files"], summary="List files")
def list_files(
    store_id: str | None = Query(None, alias="storeId", description="List this store's documents instead."),
    backend: IndexBackend = Depends(get_backend),
) -> FileListResponse:
    files = file_service.list_files(backend, store_id)
    return FileListResponse(files=[FileOut.from_file(f) for f in files])


@router.post(
    "/files",
    response_model=UploadResponse,
    tags=["files"],
    summary="Upload a file and optionally index it into a store",
    description="Uploads the file; with storeId, waits for indexing to finish. 400 on missing file; 500 on backend failure or if indexing does not finish in time.",
)
async def upload_file(
    file: UploadFile | None = File(None, description="Document to upload."),
    store_id: str | None = Form(None, alias="storeId"),
    backend: IndexBackend = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    return await handle_upload(file, store_id, backend, settings)


@router.delete("/files", response_model=SuccessResponse, tags=["files"], summary="Delete a file by name")
def delete_file(
    name: str | None = Query(None, description="Backend file resource name, e.g. files/abc123."),
    backend: IndexBackend = Depends(get_backend),
) -> SuccessResponse:
    file_service.delete_file(backend, name)
    return SuccessResponse()


@router.delete("/files/{name:path}", response_model=SuccessResponse, tags=["files"], summary="Delete a file by path")
def delete_file_by_path(name: str, backend: IndexBackend = Depends(get_backend)) -> SuccessResponse:
    file_service.delete_file(backend, name)
    return SuccessResponse()


# --- Chat ---

@router.post(
    "/chat",
    response_model=ChatResponse,
    tags=["chat"],
    summary="Chat, optionally grounded in one store",
    description="Send the new message plus prior turns; with storeId the answer is grounded in that store and carries citations.",
)
def post_chat(
    body: ChatRequest,
    backend: IndexBackend = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> ChatResponse:
    return handle_chat(body, backend, settings)

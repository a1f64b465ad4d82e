"""
API handlers: read request data (e.g. UploadFile), call services, shape responses.

Responsibility: Bridge HTTP types and services. Lives in the API layer so
services stay free of FastAPI/HTTP types. Service errors propagate as
ServiceError and are rendered by the app's exception handler.
"""

import asyncio
import threading

from fastapi import UploadFile

from storechat.backend.base import IndexBackend
from storechat.core.config import Settings
from storechat.core.errors import bad_request
from storechat.schemas.chat import ChatRequest, ChatResponse
from storechat.schemas.files import FileOut, UploadResponse
from storechat.services.chat_service import chat
from storechat.services.ingestion_service import IngestionPolicy, UploadedDocument, ingest_document


async def handle_upload(
    file: UploadFile | None,
    store_id: str | None,
    backend: IndexBackend,
    settings: Settings,
) -> UploadResponse:
    """
    Read the multipart file and run the ingestion pipeline in a worker thread.
    If this request task is cancelled, polling is told to stop; the staged copy
    is still removed by the pipeline.
    """
    if file is None or not (file.filename or "").strip():
        raise bad_request("No file provided")

    content = await file.read()
    document = UploadedDocument(filename=file.filename or "", content=content, content_type=file.content_type)
    policy = IngestionPolicy(poll_interval=settings.poll_interval, max_wait=settings.max_wait)
    cancel = threading.Event()
    try:
        result = await asyncio.to_thread(
            ingest_document,
            backend,
            document,
            store_name=store_id,
            policy=policy,
            staging_dir=settings.staging_dir,
            max_bytes=settings.max_upload_bytes,
            cancel=cancel,
        )
    except asyncio.CancelledError:
        cancel.set()
        raise

    message = "File uploaded and associated" if result.store_name else "File uploaded"
    return UploadResponse(
        success=True,
        message=message,
        file=FileOut.from_file(result.file),
        store_id=result.store_name,
        state=result.state.value,
    )


def handle_chat(body: ChatRequest, backend: IndexBackend, settings: Settings) -> ChatResponse:
    result = chat(
        backend,
        body.message,
        history=[turn.to_turn() for turn in body.history],
        store_name=body.store_id,
        model=settings.model,
    )
    return ChatResponse.from_result(result)

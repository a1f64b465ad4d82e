"""
Document ingestion: stage, upload, associate with a store, and poll to a terminal state.

Responsibility: Move one uploaded document from client bytes to a terminal
File state, optionally indexed into a store. The staged copy on local disk is
removed on every exit path. Called by the API layer; no HTTP or FastAPI here.
"""

import logging
import mimetypes
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from storechat.backend.base import IndexBackend
from storechat.backend.types import FileState, Operation, RemoteFile
from storechat.core.config import (
    DEFAULT_MIME_TYPE,
    INGEST_MAX_WAIT,
    INGEST_POLL_INTERVAL,
    MAX_UPLOAD_BYTES,
    OPAQUE_MIME_TYPES,
    STAGED_SUFFIX,
    STAGING_DIR,
)
from storechat.core.errors import BackendError, ErrorKind, ServiceError, bad_request

logger = logging.getLogger(__name__)

STAGE_STAGING = "stage"
STAGE_UPLOAD = "upload"
STAGE_ASSOCIATE = "associate"
STAGE_POLL = "poll"


@dataclass(frozen=True)
class IngestionPolicy:
    """How long and how often to poll an import operation. max_wait=None disables the deadline."""

    poll_interval: float = INGEST_POLL_INTERVAL
    max_wait: float | None = INGEST_MAX_WAIT


@dataclass
class UploadedDocument:
    """Client-supplied document: display filename, raw bytes, declared content type."""

    filename: str
    content: bytes
    content_type: str | None = None


@dataclass
class IngestionJob:
    """State of one ingestion call. Never shared, never persisted."""

    staged_path: Path
    operation: Operation | None = None
    done: bool = False


@dataclass
class IngestionResult:
    file: RemoteFile
    store_name: str | None = None
    operation_name: str | None = None

    @property
    def state(self) -> FileState:
        return self.file.state


def resolve_mime_type(filename: str, content_type: str | None) -> str:
    """Declared type if meaningful, else a guess from the extension, else text/plain."""
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared not in OPAQUE_MIME_TYPES:
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed and guessed not in OPAQUE_MIME_TYPES:
        return guessed
    return DEFAULT_MIME_TYPE


def _remove_staged(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove staged upload %s: %s", path, e)


@contextmanager
def staged_upload(content: bytes, staging_dir: str = STAGING_DIR) -> Iterator[Path]:
    """
    Write bytes to a uniquely named file under staging_dir and remove it on exit.

    The name is a fresh random id, never derived from client text. Raises
    ServiceError(IO_ERROR) if the bytes cannot be written.
    """
    path = Path(staging_dir) / f"{uuid.uuid4().hex}{STAGED_SUFFIX}"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as e:
        _remove_staged(path)
        logger.exception("Failed to stage upload under %s", staging_dir)
        raise ServiceError(ErrorKind.IO_ERROR, f"Failed to stage upload: {e}", stage=STAGE_STAGING) from e
    logger.info("[ingest:stage] staged bytes=%d path=%s", len(content), path.name)
    try:
        yield path
    finally:
        _remove_staged(path)
        logger.info("[ingest:stage] removed path=%s", path.name)


@contextmanager
def _stage(stage: str, kind: ErrorKind) -> Iterator[None]:
    """Tag backend failures inside one pipeline step with `kind` and the step name."""
    try:
        yield
    except BackendError as e:
        raise ServiceError(kind, e.message, stage=stage) from e
    except ServiceError as e:
        if e.stage is None:
            e.stage = stage
        raise


def wait_for_operation(
    backend: IndexBackend,
    operation: Operation,
    policy: IngestionPolicy | None = None,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Operation:
    """
    Re-query the operation every poll_interval until it reports done.

    Stops at the first done observation (success or failure alike). Raises
    INGESTION_TIMEOUT when the deadline passes or `cancel` is set.
    """
    policy = policy or IngestionPolicy()
    deadline = clock() + policy.max_wait if policy.max_wait is not None else None
    op = operation
    polls = 0
    while not op.done:
        if not op.name:
            raise ServiceError(
                ErrorKind.INGESTION_FAILED, "Import operation has no handle to poll", stage=STAGE_POLL
            )
        if deadline is not None and clock() >= deadline:
            logger.warning("[ingest:poll] deadline reached op=%s polls=%d", op.name, polls)
            raise ServiceError(
                ErrorKind.INGESTION_TIMEOUT,
                f"Indexing did not finish within {policy.max_wait:g}s",
                stage=STAGE_POLL,
            )
        if cancel is not None:
            if cancel.wait(policy.poll_interval):
                logger.info("[ingest:poll] cancelled op=%s polls=%d", op.name, polls)
                raise ServiceError(ErrorKind.INGESTION_TIMEOUT, "Indexing cancelled", stage=STAGE_POLL)
        else:
            sleep(policy.poll_interval)
        op = backend.get_operation(op)
        polls += 1
    logger.info("[ingest:poll] OUT op=%s polls=%d error=%s", op.name, polls, op.error)
    return op


def ingest_document(
    backend: IndexBackend,
    document: UploadedDocument,
    store_name: str | None = None,
    policy: IngestionPolicy | None = None,
    staging_dir: str = STAGING_DIR,
    max_bytes: int = MAX_UPLOAD_BYTES,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> IngestionResult:
    """
    Stage -> upload -> (associate -> poll to done) -> cleanup.

    Without a store, returns right after upload. With one, waits for the
    import to finish and re-reads the file: an operation error or a FAILED
    file is INGESTION_FAILED, never success.

    Raises:
        ServiceError: BAD_REQUEST, IO_ERROR, UPLOAD_FAILED, NOT_FOUND,
            INGESTION_FAILED or INGESTION_TIMEOUT; `stage` names the step.
    """
    filename = (document.filename or "").strip()
    if not filename:
        raise bad_request("No file provided")
    if len(document.content) > max_bytes:
        raise bad_request(f"File too large: {len(document.content)} bytes (max {max_bytes})")

    mime_type = resolve_mime_type(filename, document.content_type)
    target = (store_name or "").strip() or None
    logger.info(
        "[ingest] IN  filename=%r bytes=%d mime_type=%s store=%s",
        filename, len(document.content), mime_type, target or "-",
    )

    with staged_upload(document.content, staging_dir) as path:
        job = IngestionJob(staged_path=path)

        with _stage(STAGE_UPLOAD, ErrorKind.UPLOAD_FAILED):
            uploaded = backend.upload_file(path, display_name=filename, mime_type=mime_type)
        logger.info("[ingest:upload] OUT file=%s state=%s", uploaded.resource_name, uploaded.state.value)

        if target is None:
            return IngestionResult(file=uploaded)

        with _stage(STAGE_ASSOCIATE, ErrorKind.INGESTION_FAILED):
            job.operation = backend.import_file(target, uploaded.resource_name)
        logger.info("[ingest:associate] store=%s op=%s done=%s", target, job.operation.name, job.operation.done)

        with _stage(STAGE_POLL, ErrorKind.INGESTION_FAILED):
            job.operation = wait_for_operation(backend, job.operation, policy, cancel=cancel, sleep=sleep)
            job.done = True
            if job.operation.error:
                raise ServiceError(
                    ErrorKind.INGESTION_FAILED, f"Indexing failed: {job.operation.error}", stage=STAGE_POLL
                )
            final = backend.get_file(uploaded.resource_name)

        if final.state is FileState.FAILED:
            raise ServiceError(
                ErrorKind.INGESTION_FAILED,
                f"Indexing failed for {final.resource_name}: {final.error or 'file state FAILED'}",
                stage=STAGE_POLL,
            )
        logger.info("[ingest] OUT file=%s store=%s state=%s", final.resource_name, target, final.state.value)
        return IngestionResult(file=final, store_name=target, operation_name=job.operation.name)

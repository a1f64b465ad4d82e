"""
File listing and deletion against the backend's Files API and store documents.
"""

import logging

from storechat.backend.base import IndexBackend
from storechat.backend.types import RemoteFile
from storechat.core.config import FILES_PAGE_SIZE
from storechat.core.errors import BackendError, ErrorKind, ServiceError
from storechat.services.store_service import normalize_resource_name

logger = logging.getLogger(__name__)


def list_files(backend: IndexBackend, store_name: str | None = None) -> list[RemoteFile]:
    """
    List uploaded files. With a store id, list that store's documents instead.
    """
    store = (store_name or "").strip()
    try:
        if store:
            files = list(backend.list_store_documents(normalize_resource_name(store, "Store id")))
        else:
            files = list(backend.list_files(FILES_PAGE_SIZE))
    except BackendError as e:
        logger.exception("List files error store=%s", store or "-")
        raise ServiceError(ErrorKind.BACKEND_ERROR, e.message) from e
    logger.info("[files:list] OUT store=%s files=%d", store or "-", len(files))
    return files


def delete_file(backend: IndexBackend, name: str | None) -> None:
    """Delete a file by resource name. Missing name -> BAD_REQUEST; absent file -> NOT_FOUND."""
    file_name = normalize_resource_name(name, "File name")
    try:
        backend.delete_file(file_name)
    except BackendError as e:
        logger.exception("Delete file error name=%s", file_name)
        raise ServiceError(ErrorKind.BACKEND_ERROR, e.message) from e
    logger.info("[files:delete] OUT name=%s", file_name)

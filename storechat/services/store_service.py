"""
Store management: list, create, get, and delete file search stores.

Responsibility: CRUD over backend store resources. Called by the API layer;
no HTTP or FastAPI here.
"""

import logging
from urllib.parse import unquote

from storechat.backend.base import IndexBackend
from storechat.backend.types import Store
from storechat.core.config import DEFAULT_STORE_NAME
from storechat.core.errors import BackendError, ErrorKind, ServiceError, bad_request

logger = logging.getLogger(__name__)


def normalize_resource_name(raw: str | None, what: str = "Resource name") -> str:
    """Percent-decode an opaque backend resource name taken from a URL. Empty -> BAD_REQUEST."""
    name = unquote((raw or "").strip())
    if not name:
        raise bad_request(f"{what} required")
    return name


def list_stores(backend: IndexBackend) -> list[Store]:
    """Drain the paginated listing into one ordered list. Empty is a valid result."""
    try:
        stores = list(backend.list_stores())
    except BackendError as e:
        logger.exception("List stores error")
        raise ServiceError(ErrorKind.BACKEND_ERROR, e.message) from e
    logger.info("[stores:list] OUT stores=%d", len(stores))
    return stores


def create_store(backend: IndexBackend, display_name: str | None = None) -> Store:
    """
    Create a new store. Not idempotent: a duplicate display name still creates
    a new resource; callers de-duplicate if they need to.
    """
    name = (display_name or "").strip() or DEFAULT_STORE_NAME
    try:
        store = backend.create_store(name)
    except BackendError as e:
        logger.exception("Create store error display_name=%r", name)
        raise ServiceError(ErrorKind.BACKEND_ERROR, e.message) from e
    logger.info("[stores:create] OUT name=%s display_name=%r", store.resource_name, store.display_name)
    return store


def get_store(backend: IndexBackend, name: str) -> Store:
    store_name = normalize_resource_name(name, "Store id")
    try:
        return backend.get_store(store_name)
    except BackendError as e:
        logger.exception("Get store error name=%s", store_name)
        raise ServiceError(ErrorKind.BACKEND_ERROR, e.message) from e


def delete_store(backend: IndexBackend, name: str) -> None:
    """
    Force-delete a store and its document associations.

    A second delete of the same id raises NOT_FOUND rather than succeeding;
    callers that only want the store gone may treat that as success.
    """
    store_name = normalize_resource_name(name, "Store id")
    try:
        backend.delete_store(store_name, force=True)
    except BackendError as e:
        logger.exception("Delete store error name=%s", store_name)
        raise ServiceError(ErrorKind.BACKEND_ERROR, e.message) from e
    logger.info("[stores:delete] OUT name=%s", store_name)

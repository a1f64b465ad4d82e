"""Schemas for the store endpoints."""

from pydantic import Field

from storechat.backend.types import Store
from storechat.schemas.common import CamelModel


class CreateStoreRequest(CamelModel):
    """Request body for POST /stores. A missing display name becomes "New Store"."""

    display_name: str | None = Field(None, description="Human-readable store name; duplicates are allowed.")


class StoreOut(CamelModel):
    name: str = Field(..., description="Opaque backend resource name, e.g. fileSearchStores/abc-123.")
    display_name: str = ""
    create_time: str | None = None
    update_time: str | None = None
    active_documents_count: int | None = None
    pending_documents_count: int | None = None
    failed_documents_count: int | None = None
    size_bytes: int | None = None

    @classmethod
    def from_store(cls, store: Store) -> "StoreOut":
        return cls(
            name=store.resource_name,
            display_name=store.display_name,
            create_time=store.create_time,
            update_time=store.update_time,
            active_documents_count=store.active_documents_count,
            pending_documents_count=store.pending_documents_count,
            failed_documents_count=store.failed_documents_count,
            size_bytes=store.size_bytes,
        )


class StoreListResponse(CamelModel):
    """Response for GET /stores. Empty list when the account has no stores."""

    file_search_stores: list[StoreOut] = Field(default_factory=list)

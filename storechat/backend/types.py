"""
Domain types exchanged with the remote index backend.

Plain dataclasses so services and tests never touch SDK objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FileState(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (FileState.ACTIVE, FileState.FAILED)


@dataclass
class Store:
    """A backend-managed collection of indexed documents."""

    resource_name: str
    display_name: str = ""
    create_time: str | None = None
    update_time: str | None = None
    active_documents_count: int | None = None
    pending_documents_count: int | None = None
    failed_documents_count: int | None = None
    size_bytes: int | None = None


@dataclass
class RemoteFile:
    """One document tracked by the backend (a Files API file or a store document)."""

    resource_name: str
    display_name: str = ""
    mime_type: str | None = None
    size_bytes: int | None = None
    create_time: str | None = None
    state: FileState = FileState.PENDING
    uri: str | None = None
    error: str | None = None


@dataclass
class Operation:
    """Long-running operation handle. `handle` is the backend's own object, opaque to services."""

    name: str | None
    done: bool = False
    error: str | None = None
    handle: Any = field(default=None, repr=False)


@dataclass
class GenerationResult:
    """Generated text plus the first candidate's grounding metadata (camelCase dict) if any."""

    text: str
    grounding_metadata: dict[str, Any] | None = None

"""Schemas for the file endpoints."""

from pydantic import Field

from storechat.backend.types import RemoteFile
from storechat.schemas.common import CamelModel


class FileOut(CamelModel):
    name: str = Field(..., description="Opaque backend resource name, e.g. files/abc123.")
    display_name: str = ""
    mime_type: str | None = None
    size_bytes: int | None = None
    create_time: str | None = None
    state: str = Field("PENDING", description="PENDING, PROCESSING, ACTIVE or FAILED.")
    uri: str | None = None
    error: str | None = None

    @classmethod
    def from_file(cls, f: RemoteFile) -> "FileOut":
        return cls(
            name=f.resource_name,
            display_name=f.display_name,
            mime_type=f.mime_type,
            size_bytes=f.size_bytes,
            create_time=f.create_time,
            state=f.state.value,
            uri=f.uri,
            error=f.error,
        )


class FileListResponse(CamelModel):
    files: list[FileOut] = Field(default_factory=list)


class UploadResponse(CamelModel):
    """Response for POST /files once the file reached its final state."""

    success: bool = True
    message: str = ""
    file: FileOut
    store_id: str | None = Field(None, description="Store the file was indexed into, if any.")
    state: str = Field(..., description="Final file state.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": True,
                    "message": "File uploaded and associated",
                    "file": {"name": "files/abc123", "displayName": "report.pdf", "state": "ACTIVE"},
                    "storeId": "fileSearchStores/store-1",
                    "state": "ACTIVE",
                }
            ]
        }
    }

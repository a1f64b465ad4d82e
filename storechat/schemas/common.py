"""Shared schema base: camelCase on the wire, snake_case in Python."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(BaseModel):
    """Response for delete operations."""

    success: bool = Field(True, description="True when the backend accepted the delete.")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Human-readable error message.")

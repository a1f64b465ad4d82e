"""Schemas for the chat endpoint."""

from typing import Any

from pydantic import Field

from storechat.services.chat_service import ChatResult, ChatTurn, Citation
from storechat.schemas.common import CamelModel


class HistoryTurn(CamelModel):
    role: str = Field("user", description='"user"; anything else is treated as the model.')
    content: str = ""

    def to_turn(self) -> ChatTurn:
        return ChatTurn(role=self.role, content=self.content)


class ChatRequest(CamelModel):
    """Request body for POST /chat. History is oldest first and sent by the client every time."""

    message: str = Field(..., description="New user message.")
    history: list[HistoryTurn] = Field(default_factory=list)
    store_id: str | None = Field(None, description="Store to ground the answer in; omitted means no retrieval.")


class CitationOut(CamelModel):
    snippet_text: str
    source_uri: str | None = None
    source_title: str | None = None

    @classmethod
    def from_citation(cls, c: Citation) -> "CitationOut":
        return cls(snippet_text=c.snippet_text, source_uri=c.source_uri, source_title=c.source_title)


class ChatResponse(CamelModel):
    role: str = "model"
    content: str
    citations: list[CitationOut] = Field(default_factory=list)
    grounding_metadata: dict[str, Any] | None = None

    @classmethod
    def from_result(cls, result: ChatResult) -> "ChatResponse":
        turn = result.as_turn()
        return cls(
            role=turn.role,
            content=turn.content,
            citations=[CitationOut.from_citation(c) for c in turn.citations],
            grounding_metadata=result.grounding_metadata,
        )

"""
Chat orchestration: build a store-scoped generation request and extract citations.

Responsibility: Convert prior turns plus the new message into backend contents,
bind at most one file-search tool for this call, generate once, and turn
grounding metadata into citations. No HTTP or FastAPI here.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from storechat.backend.base import IndexBackend
from storechat.core.config import GEMINI_MODEL
from storechat.core.errors import ErrorKind, ServiceError, bad_request

logger = logging.getLogger(__name__)

USER_ROLE = "user"
MODEL_ROLE = "model"


@dataclass
class Citation:
    snippet_text: str
    source_uri: str | None = None
    source_title: str | None = None


@dataclass
class ChatTurn:
    role: str
    content: str
    citations: list[Citation] = field(default_factory=list)


@dataclass
class ChatResult:
    """Generated answer. `citations` is always a list, empty when nothing was grounded."""

    text: str
    citations: list[Citation] = field(default_factory=list)
    grounding_metadata: dict[str, Any] | None = None

    def as_turn(self) -> ChatTurn:
        return ChatTurn(role=MODEL_ROLE, content=self.text, citations=list(self.citations))


def to_contents(history: Sequence[ChatTurn], message: str) -> list[dict[str, Any]]:
    """
    Prior turns (oldest first) followed by the new user message.
    Any role other than "user" becomes "model"; no turn is dropped.
    """
    contents = [
        {
            "role": USER_ROLE if turn.role == USER_ROLE else MODEL_ROLE,
            "parts": [{"text": turn.content or ""}],
        }
        for turn in history
    ]
    contents.append({"role": USER_ROLE, "parts": [{"text": message}]})
    return contents


def _supporting_segments(grounding: dict[str, Any]) -> dict[int, str]:
    """Chunk index -> first segment text that cites it."""
    segments: dict[int, str] = {}
    for support in grounding.get("groundingSupports") or []:
        text = ((support.get("segment") or {}).get("text") or "").strip()
        if not text:
            continue
        for idx in support.get("groundingChunkIndices") or []:
            segments.setdefault(idx, text)
    return segments


def extract_citations(grounding: dict[str, Any] | None) -> list[Citation]:
    """
    One citation per grounding chunk, in backend order.

    Snippet comes from the retrieved context, falling back to the answer
    segment that cites the chunk. Source uri/title come from the retrieved
    context, falling back to a web source. Chunks with nothing to show are skipped.
    """
    if not grounding:
        return []
    segments = _supporting_segments(grounding)
    citations: list[Citation] = []
    for idx, chunk in enumerate(grounding.get("groundingChunks") or []):
        context = chunk.get("retrievedContext") or {}
        web = chunk.get("web") or {}
        snippet = (context.get("text") or "").strip() or segments.get(idx, "")
        uri = context.get("uri") or web.get("uri")
        title = context.get("title") or web.get("title")
        if not snippet and not uri and not title:
            continue
        citations.append(Citation(snippet_text=snippet, source_uri=uri, source_title=title))
    return citations


def chat(
    backend: IndexBackend,
    message: str,
    history: Sequence[ChatTurn] | None = None,
    store_name: str | None = None,
    model: str = GEMINI_MODEL,
) -> ChatResult:
    """
    Answer one message, grounded in `store_name` when given.

    The retrieval tool is bound for this call only. Raises BAD_REQUEST for a
    blank message and GENERATION_FAILED (with the backend's message) for any
    backend failure.
    """
    if not message or not str(message).strip():
        raise bad_request("Message required")
    hist = list(history or [])
    store = (store_name or "").strip() or None
    contents = to_contents(hist, message)
    logger.info("[chat] IN  message_len=%d history_len=%d store=%s model=%s", len(message), len(hist), store or "-", model)

    try:
        result = backend.generate(model, contents, store_name=store)
    except ServiceError as e:
        logger.exception("Chat error store=%s", store or "-")
        raise ServiceError(ErrorKind.GENERATION_FAILED, e.message) from e

    citations = extract_citations(result.grounding_metadata)
    logger.info("[chat] OUT text_len=%d citations=%d", len(result.text), len(citations))
    return ChatResult(
        text=result.text,
        citations=citations,
        grounding_metadata=result.grounding_metadata,
    )

"""Request bodies for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from edu_assist.errors import ProtocolError
from edu_assist.types import ChatMessage, SourceDocument


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


def parse_chat_request(body: Any) -> ChatRequest:
    """Validate a chat body, raising `ProtocolError` for anything malformed."""
    if not isinstance(body, dict) or not isinstance(body.get("messages"), list) or not body["messages"]:
        raise ProtocolError("Messages array is required")
    try:
        return ChatRequest.model_validate(body)
    except ValidationError as exc:
        raise ProtocolError(f"Invalid messages: {exc.error_count()} validation error(s)") from exc


class DocumentPayload(BaseModel):
    title: str
    content: str
    source_file: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_document(self) -> SourceDocument:
        return SourceDocument(
            title=self.title,
            content=self.content,
            source_file=self.source_file,
            metadata=dict(self.metadata),
        )


class IngestRequest(BaseModel):
    document: DocumentPayload | None = None
    documents: list[DocumentPayload] | None = None


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=20)


class SessionPayload(BaseModel):
    title: str | None = None
    messages: list[dict[str, Any]] | None = None


class SaveObjectivesRequest(BaseModel):
    topic: str | None = None
    level: str | None = None
    objectives_text: str | None = None
    objective_count: int | None = None
    had_context: bool = False
    sources: list[dict[str, Any]] = Field(default_factory=list)
    title: str | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)

    def missing_required(self) -> bool:
        return not self.topic or not self.objectives_text or not self.objective_count

"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ToolResult = dict[str, Any]


@dataclass(slots=True)
class SourceDocument:
    """A source document before cleaning and chunking."""

    title: str
    content: str
    source_file: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Passage:
    """One stored chunk of a source document.

    Identified by `(source_file, chunk_index)`; `chunk_index` runs 0..n-1
    and `total_chunks` is the same n on every passage of the document.
    """

    title: str
    content: str
    source_file: str
    chunk_index: int
    total_chunks: int
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(slots=True)
class SearchResult:
    """A passage projected with its similarity to a query."""

    id: str
    title: str
    content: str
    source_file: str
    chunk_index: int
    similarity: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def as_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "source": self.source_file,
            "chunk_index": self.chunk_index,
            "similarity": self.similarity,
            "metadata": self.metadata,
        }


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
    success: bool


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ToolCall(_WireModel):
    """A model request to run one registered tool."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResponse(_WireModel):
    name: str
    response: dict[str, Any]


class Part(_WireModel):
    """One content part: text, a tool call, or a tool result.

    Unknown keys sent by the model are kept so a model turn can be replayed
    verbatim.
    """

    text: str | None = None
    function_call: ToolCall | None = None
    function_response: ToolResponse | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Turn(_WireModel):
    role: Literal["user", "model"]
    parts: list[Part]

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [part.to_wire() for part in self.parts]}


class ChatMessage(BaseModel):
    """A client-side message as sent to the chat endpoint."""

    role: str
    content: str


@dataclass(slots=True)
class ToolCallRecord:
    """An executed call and its result, kept for the terminal event."""

    call: ToolCall
    result: ToolResult

    def as_payload(self) -> dict[str, Any]:
        return {"name": self.call.name, "args": self.call.args, "result": self.result}

"""Storage contracts consumed by tools, ingestion and the HTTP API."""

from __future__ import annotations

from typing import Any, Protocol

from edu_assist.types import Passage, SearchResult

DOCUMENTS_TABLE = "documents"
SESSIONS_TABLE = "chat_sessions"
SAVED_OBJECTIVES_TABLE = "saved_objectives"
SAVED_CONTENT_TABLE = "saved_content"


class DocumentStore(Protocol):
    """Passage storage with nearest-neighbour search."""

    async def insert_passages(self, passages: list[Passage]) -> list[str]:
        """Insert passages and return their ids in order."""

    async def source_exists(self, source_file: str) -> bool:
        """Whether any passage of `source_file` is stored."""

    async def match_documents(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[SearchResult]:
        """Top `match_count` passages with similarity >= threshold, best first."""

    async def list_documents(self) -> list[dict[str, Any]]:
        """Rows of `source_file`, `title`, `metadata` ordered by source file."""


class RecordStore(Protocol):
    """Plain CRUD over UUID-keyed records."""

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert one record and return it with `id` set."""

    async def get(self, table: str, record_id: str) -> dict[str, Any] | None:
        """Fetch one record, or None."""

    async def list(
        self, table: str, *, order_by: str = "created_at", descending: bool = True
    ) -> list[dict[str, Any]]:
        """All records of a table in the requested order."""

    async def update(
        self, table: str, record_id: str, values: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Apply `values` and return the updated record, or None if missing."""

    async def delete(self, table: str, record_id: str) -> bool:
        """Delete a record; False if it did not exist."""


class Store(DocumentStore, RecordStore, Protocol):
    """A backend serving both passages and records."""

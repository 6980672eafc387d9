"""In-process store used for tests and local runs."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from math import sqrt
from typing import Any

from edu_assist.types import Passage, SearchResult


class InMemoryStore:
    """Deterministic store implementing both document and record contracts."""

    def __init__(self) -> None:
        self._passages: list[Passage] = []
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}

    async def insert_passages(self, passages: list[Passage]) -> list[str]:
        ids: list[str] = []
        for passage in passages:
            stored = copy.copy(passage)
            stored.id = stored.id or str(uuid.uuid4())
            self._passages.append(stored)
            ids.append(stored.id)
        return ids

    async def source_exists(self, source_file: str) -> bool:
        return any(p.source_file == source_file for p in self._passages)

    async def match_documents(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[SearchResult]:
        scored = [
            (passage, _cosine_similarity(query_embedding, passage.embedding))
            for passage in self._passages
        ]
        # sorted() is stable, so equal scores keep insertion order.
        ranked = sorted(
            (item for item in scored if item[1] >= match_threshold),
            key=lambda item: item[1],
            reverse=True,
        )
        return [
            SearchResult(
                id=passage.id or "",
                title=passage.title,
                content=passage.content,
                source_file=passage.source_file,
                chunk_index=passage.chunk_index,
                similarity=similarity,
                metadata=dict(passage.metadata),
            )
            for passage, similarity in ranked[:match_count]
        ]

    async def list_documents(self) -> list[dict[str, Any]]:
        ordered = sorted(self._passages, key=lambda p: (p.source_file, p.chunk_index))
        return [
            {"source_file": p.source_file, "title": p.title, "metadata": dict(p.metadata)}
            for p in ordered
        ]

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(record)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", _now())
        self._tables.setdefault(table, {})[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def get(self, table: str, record_id: str) -> dict[str, Any] | None:
        record = self._tables.get(table, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def list(
        self, table: str, *, order_by: str = "created_at", descending: bool = True
    ) -> list[dict[str, Any]]:
        records = list(self._tables.get(table, {}).values())
        records.sort(key=lambda r: str(r.get(order_by) or ""), reverse=descending)
        return copy.deepcopy(records)

    async def update(
        self, table: str, record_id: str, values: dict[str, Any]
    ) -> dict[str, Any] | None:
        record = self._tables.get(table, {}).get(record_id)
        if record is None:
            return None
        record.update(copy.deepcopy(values))
        return copy.deepcopy(record)

    async def delete(self, table: str, record_id: str) -> bool:
        return self._tables.get(table, {}).pop(record_id, None) is not None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # Clamp into [0, 1]; float error can push identical vectors past 1.
    return min(1.0, max(0.0, numerator / (norm_a * norm_b)))

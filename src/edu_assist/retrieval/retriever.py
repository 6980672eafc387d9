"""Vector search: embed the query, then ask the store for nearest passages."""

from __future__ import annotations

import logging

from edu_assist.config import RetrievalConfig
from edu_assist.gateways.embedding import Embedder
from edu_assist.storage.base import DocumentStore
from edu_assist.types import SearchResult

logger = logging.getLogger(__name__)


class VectorSearchService:
    """Top-K similarity search with a fixed threshold and a hard K cap.

    An empty result is a normal outcome; only a failing store query raises
    (`StorageError`), and embedding failures surface as `UpstreamError`.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: Embedder,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.config = config or RetrievalConfig()

    def clamp_k(self, top_k: int | None) -> int:
        requested = top_k or self.config.default_k
        return max(1, min(int(requested), self.config.max_k))

    async def search(self, query: str, top_k: int | None = None) -> list[SearchResult]:
        query_embedding = await self.embedder.embed(query)
        return await self.search_vector(query_embedding, top_k)

    async def search_vector(
        self, query_embedding: list[float], top_k: int | None = None
    ) -> list[SearchResult]:
        k = self.clamp_k(top_k)
        results = await self.store.match_documents(
            query_embedding=query_embedding,
            match_threshold=self.config.match_threshold,
            match_count=k,
        )
        # Backends may not honour the cap or the ordering; enforce both.
        ranked = sorted(
            (r for r in results if r.similarity >= self.config.match_threshold),
            key=lambda r: r.similarity,
            reverse=True,
        )
        logger.debug("vector search returned %d/%d results (k=%d)", len(ranked), len(results), k)
        return ranked[:k]

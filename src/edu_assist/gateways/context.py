"""Explicit bundle of external collaborators passed to tools and the loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from edu_assist.config import Settings
from edu_assist.gateways.embedding import Embedder, GeminiEmbedder, HashingEmbedder
from edu_assist.gateways.gemini import GeminiClient
from edu_assist.gateways.generation import GeminiGenerationGateway, GenerationGateway
from edu_assist.storage.base import Store
from edu_assist.storage.memory import InMemoryStore
from edu_assist.storage.postgrest import PostgrestStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Gateways:
    """Embedding, generation and storage, constructed once at startup."""

    embedder: Embedder
    generator: GenerationGateway
    store: Store
    closers: list[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        """Close HTTP clients owned by remote backends."""
        for closer in self.closers:
            await closer.aclose()


def build_gateways(settings: Settings) -> Gateways:
    """Build gateways from settings, falling back to local implementations.

    Without a Gemini key the embedder is the deterministic hashing embedder;
    without a Supabase URL the store lives in memory. Generation always uses
    Gemini and reports a missing key when first called.
    """

    client = GeminiClient(
        settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        timeout=settings.request_timeout_seconds,
    )

    embedder: Embedder
    if settings.gemini_api_key:
        embedder = GeminiEmbedder(
            client,
            model=settings.embedding_model,
            dimension=settings.embedding_dimension,
        )
    else:
        logger.warning("GEMINI_API_KEY not set; using hashing embedder")
        embedder = HashingEmbedder(settings.embedding_dimension)

    closers: list[Any] = [client]
    store: Store
    if settings.supabase_url and settings.supabase_service_role_key:
        store = PostgrestStore(
            settings.supabase_url,
            settings.supabase_service_role_key,
            timeout=settings.request_timeout_seconds,
        )
        closers.append(store)
    else:
        logger.warning("SUPABASE_URL not set; using in-memory store")
        store = InMemoryStore()

    return Gateways(
        embedder=embedder,
        generator=GeminiGenerationGateway(client, model=settings.generation_model),
        store=store,
        closers=closers,
    )

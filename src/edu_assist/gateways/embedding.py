"""Embedding abstractions: Gemini-backed and deterministic baseline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt

from edu_assist.errors import UpstreamError
from edu_assist.gateways.gemini import GeminiClient


class Embedder(ABC):
    """Converts text into a fixed-length vector."""

    dimension: int

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed one text."""


class GeminiEmbedder(Embedder):
    """Calls the Gemini `embedContent` endpoint."""

    def __init__(
        self,
        client: GeminiClient,
        *,
        model: str = "gemini-embedding-001",
        dimension: int = 768,
    ) -> None:
        self.client = client
        self.model = model
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        data = await self.client.post(
            self.model,
            "embedContent",
            {
                "model": f"models/{self.model}",
                "content": {"parts": [{"text": text}]},
                "outputDimensionality": self.dimension,
            },
        )
        try:
            values = data["embedding"]["values"]
        except (KeyError, TypeError) as exc:
            raise UpstreamError("Embedding response missing embedding.values") from exc
        return [float(value) for value in values]


class HashingEmbedder(Embedder):
    """Deterministic sparse-like embedding without external model calls.

    Used for local runs without an API key and for tests. Identical text
    always maps to the identical unit vector.
    """

    def __init__(self, dimension: int = 768) -> None:
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        return self._embed(text)

    def _embed(self, text: str) -> list[float]:
        vector = [0.0 for _ in range(self.dimension)]
        tokens = text.lower().split()
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]

import asyncio
from typing import Any

import pytest

from edu_assist.agent.registry import ToolRegistry
from edu_assist.agent.tools import register_builtin_tools
from edu_assist.gateways.context import Gateways
from edu_assist.gateways.embedding import HashingEmbedder
from edu_assist.gateways.generation import GenerationGateway, GenerationResponse
from edu_assist.retrieval.retriever import VectorSearchService
from edu_assist.storage.memory import InMemoryStore
from edu_assist.types import Passage, Turn


class ScriptedGenerator(GenerationGateway):
    """Replays scripted model turns and records what it was sent.

    `turns` holds one list of wire-format parts per `generate` call;
    `generate_text` (used by the generation tools) returns `text_reply`.
    """

    def __init__(self, turns: list[list[dict[str, Any]]] | None = None, text_reply: str = "1. Objective") -> None:
        self.turns = list(turns or [])
        self.text_reply = text_reply
        self.calls: list[dict[str, Any]] = []
        self.prompts: list[str] = []

    async def generate(
        self,
        contents: list[Turn],
        *,
        system_instruction: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> GenerationResponse:
        self.calls.append(
            {
                "contents": [turn.to_wire() for turn in contents],
                "system_instruction": system_instruction,
                "tools": tools,
            }
        )
        if not self.turns:
            raise AssertionError("no scripted model turn left")
        parts = self.turns.pop(0)
        return GenerationResponse.model_validate(
            {"candidates": [{"content": {"role": "model", "parts": parts}}]}
        )

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.text_reply


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def gateways(embedder, generator, store) -> Gateways:
    return Gateways(embedder=embedder, generator=generator, store=store)


@pytest.fixture
def search_service(store, embedder) -> VectorSearchService:
    return VectorSearchService(store, embedder)


@pytest.fixture
def registry(gateways, search_service) -> ToolRegistry:
    registry = ToolRegistry()
    register_builtin_tools(registry, gateways, search_service)
    return registry


@pytest.fixture
def add_passage(store, embedder):
    """Store one passage embedded from its own content."""

    def _add(source_file: str, content: str, *, title: str | None = None, chunk_index: int = 0) -> str:
        embedding = asyncio.run(embedder.embed(content))
        passage = Passage(
            title=title or source_file,
            content=content,
            source_file=source_file,
            chunk_index=chunk_index,
            total_chunks=chunk_index + 1,
            embedding=embedding,
        )
        return asyncio.run(store.insert_passages([passage]))[0]

    return _add

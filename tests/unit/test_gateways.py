import asyncio
import json

import httpx
import pytest

from edu_assist.config import Settings
from edu_assist.errors import UpstreamError
from edu_assist.gateways.context import build_gateways
from edu_assist.gateways.embedding import GeminiEmbedder, HashingEmbedder
from edu_assist.gateways.generation import GeminiGenerationGateway
from edu_assist.gateways.gemini import GeminiClient
from edu_assist.storage.memory import InMemoryStore
from edu_assist.storage.postgrest import PostgrestStore
from edu_assist.types import Part, Turn


def _client(handler, api_key: str | None = "test-key") -> tuple[GeminiClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return GeminiClient(api_key, base_url="https://gemini.test/v1beta", http_client=http), seen


def test_embed_request_shape_and_values() -> None:
    client, seen = _client(lambda request: httpx.Response(200, json={"embedding": {"values": [0.1, 0.2, 0.3]}}))
    embedder = GeminiEmbedder(client, model="gemini-embedding-001", dimension=3)

    vector = asyncio.run(embedder.embed("What is osmosis?"))

    assert vector == [0.1, 0.2, 0.3]
    request = seen[0]
    assert str(request.url) == "https://gemini.test/v1beta/models/gemini-embedding-001:embedContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    assert json.loads(request.content) == {
        "model": "models/gemini-embedding-001",
        "content": {"parts": [{"text": "What is osmosis?"}]},
        "outputDimensionality": 3,
    }


def test_embed_non_success_raises_upstream_error() -> None:
    client, _ = _client(lambda request: httpx.Response(429, text="quota exceeded"))
    embedder = GeminiEmbedder(client)

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(embedder.embed("anything"))

    assert exc_info.value.status == 429
    assert "quota exceeded" in exc_info.value.message


def test_embed_missing_values_raises_upstream_error() -> None:
    client, _ = _client(lambda request: httpx.Response(200, json={"embedding": {}}))

    with pytest.raises(UpstreamError):
        asyncio.run(GeminiEmbedder(client).embed("anything"))


def test_missing_api_key_fails_without_request() -> None:
    client, seen = _client(lambda request: httpx.Response(200, json={}), api_key=None)

    with pytest.raises(UpstreamError, match="GEMINI_API_KEY"):
        asyncio.run(GeminiEmbedder(client).embed("anything"))
    assert seen == []


def test_generate_request_shape_and_parts() -> None:
    reply = {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [
                        {
                            "functionCall": {"name": "search_knowledge_base", "args": {"query": "osmosis"}},
                            "thoughtSignature": "abc123",
                        }
                    ],
                },
                "finishReason": "STOP",
            }
        ]
    }
    client, seen = _client(lambda request: httpx.Response(200, json=reply))
    gateway = GeminiGenerationGateway(client, model="gemini-2.5-flash")
    declarations = [{"name": "search_knowledge_base", "description": "search", "parameters": {"type": "object"}}]

    response = asyncio.run(
        gateway.generate(
            [Turn(role="user", parts=[Part(text="Explain osmosis")])],
            system_instruction="You are EduAssist.",
            tools=declarations,
        )
    )

    assert str(seen[0].url).endswith("/models/gemini-2.5-flash:generateContent")
    assert json.loads(seen[0].content) == {
        "contents": [{"role": "user", "parts": [{"text": "Explain osmosis"}]}],
        "systemInstruction": {"parts": [{"text": "You are EduAssist."}]},
        "tools": [{"functionDeclarations": declarations}],
    }
    (part,) = response.first_parts()
    assert part.function_call.name == "search_knowledge_base"
    assert part.function_call.args == {"query": "osmosis"}
    assert part.to_wire()["thoughtSignature"] == "abc123"


def test_generate_text_joins_text_parts() -> None:
    reply = {"candidates": [{"content": {"parts": [{"text": "1. Define "}, {"text": "osmosis."}]}}]}
    client, seen = _client(lambda request: httpx.Response(200, json=reply))

    text = asyncio.run(GeminiGenerationGateway(client).generate_text("prompt"))

    assert text == "1. Define osmosis."
    body = json.loads(seen[0].content)
    assert "tools" not in body
    assert "systemInstruction" not in body


def test_generate_without_candidates_has_no_parts() -> None:
    client, _ = _client(lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}))

    response = asyncio.run(GeminiGenerationGateway(client).generate([Turn(role="user", parts=[Part(text="x")])]))

    assert response.first_parts() == []
    assert response.text == ""


def test_hashing_embedder_is_deterministic_unit_vector() -> None:
    embedder = HashingEmbedder(dimension=32)

    first = asyncio.run(embedder.embed("Cells divide"))
    second = asyncio.run(embedder.embed("cells   divide"))

    assert first == second
    assert len(first) == 32
    assert abs(sum(value * value for value in first) - 1.0) < 1e-9
    assert asyncio.run(embedder.embed("")) == [0.0] * 32


def test_build_gateways_falls_back_to_local_backends() -> None:
    gateways = build_gateways(Settings(_env_file=None, gemini_api_key=None, supabase_url=None))

    assert isinstance(gateways.embedder, HashingEmbedder)
    assert isinstance(gateways.store, InMemoryStore)
    assert isinstance(gateways.generator, GeminiGenerationGateway)


def test_build_gateways_uses_remote_backends_when_configured() -> None:
    settings = Settings(
        _env_file=None,
        gemini_api_key="key",
        supabase_url="https://project.supabase.test",
        supabase_service_role_key="service-key",
        embedding_dimension=256,
    )

    gateways = build_gateways(settings)

    assert isinstance(gateways.embedder, GeminiEmbedder)
    assert gateways.embedder.dimension == 256
    assert isinstance(gateways.store, PostgrestStore)
    assert gateways.store.base_url == "https://project.supabase.test/rest/v1"

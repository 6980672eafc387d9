"""Service wiring for the HTTP API."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from edu_assist.agent.orchestrator import ChatOrchestrator
from edu_assist.agent.registry import ToolRegistry
from edu_assist.agent.tools import register_builtin_tools
from edu_assist.config import AgentConfig, ChunkingConfig, RetrievalConfig
from edu_assist.gateways.context import Gateways
from edu_assist.ingest.chunker import WordWindowChunker
from edu_assist.ingest.parser import ParserRegistry
from edu_assist.ingest.pipeline import IngestPipeline
from edu_assist.retrieval.retriever import VectorSearchService


@dataclass(slots=True)
class AppServices:
    gateways: Gateways
    search: VectorSearchService
    registry: ToolRegistry
    orchestrator: ChatOrchestrator
    ingest: IngestPipeline
    gemini_configured: bool = False
    supabase_configured: bool = False


def build_services(
    gateways: Gateways,
    *,
    retrieval_config: RetrievalConfig | None = None,
    agent_config: AgentConfig | None = None,
    chunking_config: ChunkingConfig | None = None,
) -> AppServices:
    search = VectorSearchService(gateways.store, gateways.embedder, retrieval_config)
    registry = ToolRegistry()
    register_builtin_tools(registry, gateways, search)
    orchestrator = ChatOrchestrator(
        generator=gateways.generator,
        tool_registry=registry,
        config=agent_config,
    )
    ingest = IngestPipeline(
        ParserRegistry(),
        WordWindowChunker(chunking_config),
        gateways.embedder,
        gateways.store,
    )
    return AppServices(
        gateways=gateways,
        search=search,
        registry=registry,
        orchestrator=orchestrator,
        ingest=ingest,
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services

"""Built-in tools exposed to the generation model."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from edu_assist.agent import prompts
from edu_assist.agent.registry import ToolRegistry, ToolSpec
from edu_assist.config import RetrievalConfig
from edu_assist.errors import EduAssistError
from edu_assist.gateways.context import Gateways
from edu_assist.retrieval.retriever import VectorSearchService
from edu_assist.storage.base import SAVED_CONTENT_TABLE
from edu_assist.types import ToolResult

logger = logging.getLogger(__name__)

_LEVEL_HELP = "Educational level: elementary, middle_school, high_school, university, or professional"


class ListTopicsInput(BaseModel):
    pass


class SearchInput(BaseModel):
    query: str = Field(min_length=1, description="The search query to find relevant content in the knowledge base")
    top_k: int = Field(default=5, description="Number of most relevant results to return (default: 5, max: 10)")


class ObjectivesInput(BaseModel):
    topic: str = Field(min_length=1, description="The topic or subject for which to generate learning objectives")
    context: str = Field(
        default="",
        description="Passages from search_knowledge_base results used to ground the objectives",
    )
    count: int = Field(default=3, ge=1, description="Number of learning objectives to generate (default: 3)")
    level: str = Field(default="university", description=_LEVEL_HELP)


class MisconceptionsInput(BaseModel):
    topic: str = Field(
        min_length=1,
        description=(
            "The topic or concept(s) to analyze. When the user asks about several topics at once, "
            "list them all here separated by commas."
        ),
    )
    student_level: str = Field(default="university", description=_LEVEL_HELP)


class LearningPathInput(BaseModel):
    topic: str = Field(
        min_length=1,
        description="Main topic of the path; may combine several related topics into one integrated curriculum",
    )
    context: str = Field(default="", description="Passages from search_knowledge_base results to ground the path")
    start_level: str = Field(default="beginner", description="Starting level: beginner, intermediate, or advanced")
    end_level: str = Field(default="intermediate", description="Target level: beginner, intermediate, or advanced")
    duration: str = Field(
        default="one_month", description="Timeframe: one_week, one_month, one_semester, or one_year"
    )
    objective_count: int = Field(default=5, ge=1, description="Number of learning objectives in the path (default: 5)")


class ContentMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    topic: str | None = None
    content_type: str | None = None
    level: str | None = None
    tags: list[str] | None = None


class SaveContentInput(BaseModel):
    title: str = Field(min_length=1, description="A descriptive title for the content being saved")
    content: str = Field(min_length=1, description="The content to save (markdown allowed)")
    metadata: ContentMetadata = Field(
        default_factory=ContentMetadata,
        description="Additional metadata like topic, level, content_type, tags",
    )


def register_builtin_tools(
    registry: ToolRegistry,
    gateways: Gateways,
    search_service: VectorSearchService,
    *,
    config: RetrievalConfig | None = None,
) -> None:
    """Register the default tool set used by the chat loop.

    Tools:
    - `list_available_topics`: distinct source documents in the store.
    - `search_knowledge_base`: embedding search with a capped K.
    - `generate_learning_objectives`: Bloom-aligned objectives over given context.
    - `identify_common_misconceptions`: runs its own search, then generates.
    - `generate_learning_path`: sequenced objectives over given context.
    - `save_content`: persists generated material.
    """

    retrieval = config or search_service.config
    store = gateways.store
    generator = gateways.generator

    async def _search_payload(query: str, top_k: int | None) -> ToolResult:
        try:
            hits = await search_service.search(query, top_k)
        except EduAssistError as exc:
            logger.warning("search for %r failed: %s", query, exc)
            return {"success": False, "error": exc.message, "query": query, "results_count": 0, "results": []}
        results = [hit.as_payload() for hit in hits]
        return {"success": True, "query": query, "results_count": len(results), "results": results}

    async def _list_topics(_: ListTopicsInput) -> ToolResult:
        rows = await store.list_documents()
        topics: dict[str, dict[str, Any]] = {}
        for row in rows:
            source = row.get("source_file")
            if not source or source in topics:
                continue
            topics[source] = {"source": source, "title": row.get("title") or source}
        listed = list(topics.values())
        return {
            "success": True,
            "topics_count": len(listed),
            "topics": listed[: retrieval.topics_cap],
            "message": f"Found {len(listed)} documents in the knowledge base.",
        }

    async def _search(data: SearchInput) -> ToolResult:
        return await _search_payload(data.query, data.top_k)

    async def _objectives(data: ObjectivesInput) -> ToolResult:
        prompt = prompts.build_objectives_prompt(data.topic, data.context, data.count, data.level)
        text = await generator.generate_text(prompt)
        return {
            "success": True,
            "topic": data.topic,
            "level": data.level,
            "count": data.count,
            "objectives": text,
            "had_context": data.context != "",
        }

    async def _misconceptions(data: MisconceptionsInput) -> ToolResult:
        search = await _search_payload(
            prompts.misconception_search_query(data.topic), retrieval.misconception_k
        )
        context = "\n\n".join(result["content"] for result in search["results"])
        prompt = prompts.build_misconceptions_prompt(data.topic, data.student_level, context)
        text = await generator.generate_text(prompt)
        return {
            "success": True,
            "topic": data.topic,
            "student_level": data.student_level,
            "misconceptions": text,
            "had_context": context != "",
            "sources_used": search["results_count"],
        }

    async def _learning_path(data: LearningPathInput) -> ToolResult:
        prompt = prompts.build_learning_path_prompt(
            data.topic,
            data.context,
            data.start_level,
            data.end_level,
            data.duration,
            data.objective_count,
        )
        text = await generator.generate_text(prompt)
        return {
            "success": True,
            "topic": data.topic,
            "start_level": data.start_level,
            "end_level": data.end_level,
            "duration": data.duration,
            "objective_count": data.objective_count,
            "learning_path": text,
            "had_context": data.context != "",
        }

    async def _save(data: SaveContentInput) -> ToolResult:
        metadata = data.metadata.model_dump(exclude_none=True)
        record = await store.insert(
            SAVED_CONTENT_TABLE,
            {
                "title": data.title,
                "content": data.content,
                "metadata": metadata,
                "content_type": metadata.get("content_type") or "general",
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        return {
            "success": True,
            "message": f'Content "{data.title}" has been saved successfully.',
            "saved_id": record["id"],
            "created_at": record.get("created_at"),
        }

    registry.register(
        ToolSpec(
            name="list_available_topics",
            description=(
                "Lists the documents and topics available in the knowledge base. Use it to show "
                "users what content exists or to suggest topics to explore."
            ),
            args_schema=ListTopicsInput,
            handler=_list_topics,
            tags=["retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            name="search_knowledge_base",
            description=(
                "Semantic search over the educational knowledge base. Use it to find relevant "
                "passages before answering questions or generating content."
            ),
            args_schema=SearchInput,
            handler=_search,
            tags=["retrieval", "rag"],
            failure_payload={"results_count": 0, "results": []},
        )
    )
    registry.register(
        ToolSpec(
            name="generate_learning_objectives",
            description=(
                "Generates measurable learning objectives following Bloom's taxonomy. Call "
                "search_knowledge_base FIRST and pass the retrieved passages as context."
            ),
            args_schema=ObjectivesInput,
            handler=_objectives,
            tags=["generation"],
        )
    )
    registry.register(
        ToolSpec(
            name="save_content",
            description="Saves generated educational content. Use only when the user explicitly asks to save it.",
            args_schema=SaveContentInput,
            handler=_save,
            tags=["storage"],
        )
    )
    registry.register(
        ToolSpec(
            name="identify_common_misconceptions",
            description=(
                "Identifies common student misconceptions for one or more topics using the knowledge "
                "base. Use proactively before generating objectives. Combine related topics from one "
                "request into a single call."
            ),
            args_schema=MisconceptionsInput,
            handler=_misconceptions,
            tags=["generation", "rag"],
        )
    )
    registry.register(
        ToolSpec(
            name="generate_learning_path",
            description=(
                "Creates a sequenced learning path (curriculum) ordered by prerequisite knowledge. Use "
                "for course outlines rather than isolated objectives. Combine related topics into ONE path."
            ),
            args_schema=LearningPathInput,
            handler=_learning_path,
            tags=["generation"],
        )
    )

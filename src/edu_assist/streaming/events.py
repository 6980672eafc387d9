"""Lifecycle events emitted by the chat loop."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventType(str, Enum):
    STATUS = "status"
    FUNCTION_START = "function_start"
    FUNCTION_COMPLETE = "function_complete"
    CONTENT = "content"
    DONE = "done"
    ERROR = "error"


_TOOL_STAGES: dict[str, tuple[str, str]] = {
    "search_knowledge_base": ("searching", "Searching knowledge base..."),
    "identify_common_misconceptions": ("analyzing", "Analyzing misconceptions..."),
    "generate_learning_objectives": ("generating", "Generating learning objectives..."),
    "generate_learning_path": ("generating", "Creating learning path..."),
    "list_available_topics": ("retrieving", "Listing available topics..."),
    "save_content": ("saving", "Saving content..."),
}
_DEFAULT_STAGE = ("processing", "Processing...")


def stage_for_tool(name: str) -> tuple[str, str]:
    """Progress stage and message shown while `name` runs."""
    return _TOOL_STAGES.get(name, _DEFAULT_STAGE)


@dataclass(slots=True, frozen=True)
class StreamEvent:
    """One typed event; `encode` produces its SSE frame."""

    type: EventType
    data: dict[str, Any]

    @property
    def terminal(self) -> bool:
        return self.type in (EventType.DONE, EventType.ERROR)

    def encode(self) -> str:
        payload = json.dumps(self.data, ensure_ascii=False, default=str)
        return f"event: {self.type.value}\ndata: {payload}\n\n"

    @classmethod
    def status(cls, stage: str, message: str) -> "StreamEvent":
        return cls(EventType.STATUS, {"stage": stage, "message": message})

    @classmethod
    def function_start(cls, name: str, args: dict[str, Any]) -> "StreamEvent":
        return cls(EventType.FUNCTION_START, {"name": name, "args": args})

    @classmethod
    def function_complete(cls, name: str, result: dict[str, Any]) -> "StreamEvent":
        return cls(EventType.FUNCTION_COMPLETE, {"name": name, "result": result})

    @classmethod
    def content(cls, text: str) -> "StreamEvent":
        return cls(EventType.CONTENT, {"text": text})

    @classmethod
    def done(cls, parts: list[dict[str, Any]], function_calls: list[dict[str, Any]]) -> "StreamEvent":
        return cls(EventType.DONE, {"parts": parts, "function_calls": function_calls})

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(EventType.ERROR, {"message": message})

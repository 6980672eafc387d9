"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import copy
import logging
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from langchain_core.utils.function_calling import convert_to_openai_function
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from edu_assist.errors import ToolExecutionError
from edu_assist.types import ToolResult, ToolTrace

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[ToolResult]]

# Schema keywords accepted in Gemini function declarations.
_DECLARATION_KEYS = frozenset(
    {
        "type",
        "description",
        "properties",
        "required",
        "items",
        "enum",
        "default",
        "format",
        "nullable",
        "minimum",
        "maximum",
    }
)


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: ToolHandler
    tags: list[str] = Field(default_factory=list)
    # Merged under the error of any failed call, e.g. empty result lists.
    failure_payload: dict[str, Any] = Field(default_factory=dict)

    async def invoke(self, payload: dict[str, Any]) -> ToolResult:
        data = self.args_schema.model_validate(payload)
        return await self.handler(data)

    def failure(self, error: ToolExecutionError) -> ToolResult:
        return {**copy.deepcopy(self.failure_payload), **error.as_tool_result()}


class ToolRegistry:
    """Maps tool names to specs, executes calls and exports declarations.

    `execute` never raises: unknown names, invalid arguments and handler
    failures all come back as `{"success": False, "error": ...}` so the
    calling loop can keep going.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def names(self) -> list[str]:
        return list(self._tools)

    async def execute(self, name: str, payload: dict[str, Any] | None = None) -> ToolResult:
        spec = self._tools.get(name)
        if spec is None:
            logger.warning("Model requested unknown tool %r", name)
            return {"success": False, "error": f"Unknown function: {name}"}
        return await self._execute_spec(spec, payload or {})

    def as_langchain_tools(self) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self._tools.values():
            tools.append(
                StructuredTool.from_function(
                    name=spec.name,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    coroutine=self._build_coroutine(spec),
                )
            )
        return tools

    def declarations(self) -> list[dict[str, Any]]:
        """Function declarations in the shape the generation model expects."""
        declarations: list[dict[str, Any]] = []
        for tool in self.as_langchain_tools():
            function = convert_to_openai_function(tool)
            parameters = _declaration_schema(
                function.get("parameters") or {"type": "object", "properties": {}}
            )
            parameters.setdefault("properties", {})
            declarations.append(
                {
                    "name": function["name"],
                    "description": function.get("description", ""),
                    "parameters": parameters,
                }
            )
        return declarations

    def _build_coroutine(self, spec: ToolSpec) -> Callable[..., Awaitable[ToolResult]]:
        async def _callable(**kwargs: Any) -> ToolResult:
            return await self._execute_spec(spec, kwargs)

        return _callable

    async def _execute_spec(self, spec: ToolSpec, payload: dict[str, Any]) -> ToolResult:
        start = perf_counter()
        try:
            output = await spec.invoke(payload)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'args'}: {err['msg']}"
                for err in exc.errors()
            )
            output = spec.failure(
                ToolExecutionError(spec.name, f"Invalid arguments for {spec.name}: {details}")
            )
        except Exception as exc:
            logger.exception("Tool %s failed", spec.name)
            output = spec.failure(ToolExecutionError(spec.name, exc))
        latency_ms = (perf_counter() - start) * 1000.0
        success = bool(output.get("success", False))
        logger.info("tool %s finished success=%s in %.1fms", spec.name, success, latency_ms)

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=str(output)[:320],
                    latency_ms=latency_ms,
                    success=success,
                )
            )
        return output


def _declaration_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Reduce a JSON schema to the keywords function declarations accept.

    `anyOf: [X, null]` (optional fields) collapses to X with `nullable`.
    """

    any_of = schema.get("anyOf")
    if isinstance(any_of, list):
        non_null = [option for option in any_of if option.get("type") != "null"]
        if len(non_null) == 1:
            merged = {**non_null[0], **{k: v for k, v in schema.items() if k != "anyOf"}}
            if len(non_null) < len(any_of):
                merged["nullable"] = True
            return _declaration_schema(merged)

    cleaned: dict[str, Any] = {}
    for key, value in schema.items():
        if key not in _DECLARATION_KEYS:
            continue
        if key == "properties":
            cleaned[key] = {name: _declaration_schema(prop) for name, prop in value.items()}
        elif key == "items" and isinstance(value, dict):
            cleaned[key] = _declaration_schema(value)
        elif key == "default" and value is None:
            continue
        else:
            cleaned[key] = value
    return cleaned

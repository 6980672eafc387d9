"""Tool-calling chat loop: alternate model turns and tool runs, stream events."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from enum import Enum

from edu_assist.agent.prompts import SYSTEM_PROMPT
from edu_assist.agent.registry import ToolRegistry
from edu_assist.config import AgentConfig
from edu_assist.errors import EduAssistError, LoopError, ProtocolError
from edu_assist.gateways.generation import GenerationGateway
from edu_assist.streaming.events import StreamEvent, stage_for_tool
from edu_assist.types import ChatMessage, Part, ToolCall, ToolCallRecord, ToolResponse, Turn

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    BUILDING_CONTEXT = "building_context"
    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    EXECUTING_TOOL = "executing_tool"
    FINALIZING = "finalizing"
    DONE = "done"
    ERROR = "error"


def build_contents(messages: Sequence[ChatMessage]) -> list[Turn]:
    """Rebuild model-facing history from client messages.

    Every message but the last maps `user` to `user` and anything else to
    `model`. A leading model turn (the canned greeting) is dropped. The
    last message is always sent as the user turn.
    """

    if not messages:
        raise ProtocolError("Messages array is required")

    history = [
        Turn(role="user" if msg.role == "user" else "model", parts=[Part(text=msg.content)])
        for msg in messages[:-1]
    ]
    if history and history[0].role == "model":
        history = history[1:]
    history.append(Turn(role="user", parts=[Part(text=messages[-1].content)]))
    return history


def stream_tokens(text: str) -> list[str]:
    """Split on single spaces, keeping the separator on all but the last token."""
    words = text.split(" ")
    return [word + " " if i < len(words) - 1 else word for i, word in enumerate(words)]


class ChatOrchestrator:
    """Drives one conversation to a final answer.

    Stateless across requests: each `stream` call owns its own `contents`
    and tool ledger. Control only yields at the model call, the tool call
    and each emitted event; if the consumer stops iterating, no further
    model or tool calls are made.
    """

    def __init__(
        self,
        *,
        generator: GenerationGateway,
        tool_registry: ToolRegistry,
        config: AgentConfig | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.generator = generator
        self.tool_registry = tool_registry
        self.config = config or AgentConfig()
        self.system_prompt = system_prompt

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncGenerator[StreamEvent, None]:
        """Yield lifecycle events ending with exactly one `done` or `error`."""

        state = LoopState.BUILDING_CONTEXT
        ledger: list[ToolCallRecord] = []
        try:
            yield StreamEvent.status("analyzing", "Analyzing your request...")
            contents = build_contents(messages)
            declarations = self.tool_registry.declarations()

            for iteration in range(1, self.config.max_iterations + 1):
                state = self._transition(state, LoopState.AWAITING_MODEL, iteration)
                response = await self.generator.generate(
                    contents,
                    system_instruction=self.system_prompt,
                    tools=declarations,
                )
                parts = response.first_parts()
                if not parts:
                    raise LoopError("No response generated")

                calls = [part.function_call for part in parts if part.function_call is not None]
                if not calls:
                    state = self._transition(state, LoopState.FINALIZING, iteration)
                    yield StreamEvent.status("generating", "Generating response...")
                    text = "".join(part.text for part in parts if part.text)
                    for token in stream_tokens(text):
                        yield StreamEvent.content(token)
                    yield StreamEvent.done(
                        parts=[part.to_wire() for part in parts],
                        function_calls=[record.as_payload() for record in ledger],
                    )
                    self._transition(state, LoopState.DONE, iteration)
                    return

                state = self._transition(state, LoopState.TOOL_REQUESTED, iteration)
                selected = calls if self.config.execute_all_tool_calls else calls[:1]
                if len(selected) < len(calls):
                    logger.warning(
                        "model requested %d tool calls; executing only %s",
                        len(calls),
                        selected[0].name,
                    )

                responses: list[Part] = []
                for call in selected:
                    state = self._transition(state, LoopState.EXECUTING_TOOL, iteration)
                    async for event in self._run_tool(call, ledger):
                        yield event
                    responses.append(
                        Part(function_response=ToolResponse(name=call.name, response=ledger[-1].result))
                    )

                # The model turn goes back verbatim, unexecuted calls included.
                contents.append(Turn(role="model", parts=parts))
                contents.append(Turn(role="user", parts=responses))

            raise LoopError(f"Maximum iterations ({self.config.max_iterations}) exceeded")
        except EduAssistError as exc:
            logger.error("chat loop failed in %s: %s", state.value, exc.message)
            self._transition(state, LoopState.ERROR, None)
            yield StreamEvent.error(exc.message)
        except Exception as exc:
            logger.exception("unexpected chat loop failure in %s", state.value)
            self._transition(state, LoopState.ERROR, None)
            yield StreamEvent.error(str(exc) or type(exc).__name__)

    async def _run_tool(
        self, call: ToolCall, ledger: list[ToolCallRecord]
    ) -> AsyncGenerator[StreamEvent, None]:
        stage, message = stage_for_tool(call.name)
        yield StreamEvent.status(stage, message)
        yield StreamEvent.function_start(call.name, call.args)
        result = await self.tool_registry.execute(call.name, call.args)
        ledger.append(ToolCallRecord(call=call, result=result))
        yield StreamEvent.function_complete(call.name, result)

    @staticmethod
    def _transition(current: LoopState, target: LoopState, iteration: int | None) -> LoopState:
        logger.debug("loop %s -> %s (iteration=%s)", current.value, target.value, iteration)
        return target

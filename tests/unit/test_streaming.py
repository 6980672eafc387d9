import asyncio

from edu_assist.agent.orchestrator import ChatOrchestrator
from edu_assist.streaming.events import EventType, StreamEvent, stage_for_tool
from edu_assist.streaming.transport import sse_stream
from edu_assist.types import ChatMessage


def _drain(stream) -> list[bytes]:
    async def _run() -> list[bytes]:
        return [chunk async for chunk in stream]

    return asyncio.run(_run())


def test_event_frame_format() -> None:
    event = StreamEvent.status("analyzing", "Analyzing your request...")

    assert event.encode() == (
        'event: status\ndata: {"stage": "analyzing", "message": "Analyzing your request..."}\n\n'
    )


def test_non_ascii_text_is_kept() -> None:
    assert StreamEvent.content("théorème ").encode() == 'event: content\ndata: {"text": "théorème "}\n\n'


def test_terminal_events() -> None:
    assert StreamEvent.done([], []).terminal
    assert StreamEvent.error("boom").terminal
    assert not StreamEvent.content("x").terminal
    assert StreamEvent.function_start("save_content", {}).type is EventType.FUNCTION_START


def test_stage_map_with_default() -> None:
    assert stage_for_tool("search_knowledge_base") == ("searching", "Searching knowledge base...")
    assert stage_for_tool("generate_learning_path") == ("generating", "Creating learning path...")
    assert stage_for_tool("save_content") == ("saving", "Saving content...")
    assert stage_for_tool("something_else") == ("processing", "Processing...")


def test_transport_stops_after_terminal_event() -> None:
    async def _events():
        yield StreamEvent.content("Hello")
        yield StreamEvent.done([], [])
        yield StreamEvent.content("never sent")

    frames = _drain(sse_stream(_events()))

    assert frames == [
        b'event: content\ndata: {"text": "Hello"}\n\n',
        b'event: done\ndata: {"parts": [], "function_calls": []}\n\n',
    ]


def test_transport_closes_events_on_disconnect() -> None:
    closed = []

    async def _events():
        try:
            yield StreamEvent.content("one")
            yield StreamEvent.content("two")
            yield StreamEvent.content("three")
        finally:
            closed.append(True)

    checks = iter([False, True])

    async def _is_disconnected() -> bool:
        return next(checks)

    frames = _drain(sse_stream(_events(), _is_disconnected))

    assert frames == [b'event: content\ndata: {"text": "one"}\n\n']
    assert closed == [True]


def test_disconnect_stops_loop_before_tool_runs(generator, registry) -> None:
    generator.turns = [
        [{"functionCall": {"name": "list_available_topics", "args": {}}}],
        [{"text": "unreachable"}],
    ]
    observed = []
    registry.set_observer(observed.append)
    orchestrator = ChatOrchestrator(generator=generator, tool_registry=registry)
    checks = iter([False, True])

    async def _is_disconnected() -> bool:
        return next(checks, True)

    frames = _drain(
        sse_stream(orchestrator.stream([ChatMessage(role="user", content="topics?")]), _is_disconnected)
    )

    assert len(frames) == 1
    assert frames[0].startswith(b"event: status")
    assert len(generator.calls) == 1
    assert observed == []

"""Server-sent-event transport for loop events."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import aclosing

from edu_assist.streaming.events import StreamEvent

logger = logging.getLogger(__name__)


async def sse_stream(
    events: AsyncGenerator[StreamEvent, None],
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncIterator[bytes]:
    """Frame events as `event: <type>\\ndata: <json>\\n\\n`, strictly in order.

    The disconnect check runs before each write; once the client is gone the
    event generator is closed, which stops the loop at its current step
    instead of letting it run to completion.
    """

    async with aclosing(events):
        async for event in events:
            if is_disconnected is not None and await is_disconnected():
                logger.info("client disconnected; aborting before %s event", event.type.value)
                return
            yield event.encode().encode("utf-8")
            if event.terminal:
                return

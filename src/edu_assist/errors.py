"""Error taxonomy shared across gateways, storage, tools and the loop."""

from __future__ import annotations

from typing import Any


class EduAssistError(Exception):
    """Base class for application errors.

    `status_code` is used by the HTTP layer when the error escapes before a
    response stream has been opened.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(EduAssistError):
    """The embedding or generation service returned a failure."""

    status_code = 502

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StorageError(EduAssistError):
    """The backing store rejected or failed a query."""


class ProtocolError(EduAssistError):
    """The caller sent a malformed request."""


class LoopError(EduAssistError):
    """The orchestration loop cannot produce an answer."""


class ToolExecutionError(EduAssistError):
    """A tool failed; never propagated raw past the tool registry."""

    def __init__(self, tool_name: str, cause: BaseException | str) -> None:
        message = str(cause) if str(cause) else type(cause).__name__
        super().__init__(message)
        self.tool_name = tool_name
        self.cause = cause

    def as_tool_result(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}

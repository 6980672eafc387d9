"""Thin async HTTP client for the Gemini REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from edu_assist.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient:
    """Posts JSON to `models/<model>:<method>` endpoints.

    No retries are attempted; a non-success status is raised as
    `UpstreamError` and retry policy is left to the caller.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def post(self, model: str, method: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise UpstreamError("GEMINI_API_KEY is not configured")

        url = f"{self.base_url}/models/{model}:{method}"
        try:
            response = await self._http.post(
                url,
                json=body,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Gemini request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("Gemini %s returned %s: %s", method, response.status_code, response.text[:500])
            raise UpstreamError(
                f"Gemini {method} error ({response.status_code}): {response.text}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Gemini {method} returned invalid JSON") from exc

    async def aclose(self) -> None:
        await self._http.aclose()

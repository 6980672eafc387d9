"""Supabase-compatible store speaking the PostgREST HTTP interface."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from edu_assist.errors import StorageError
from edu_assist.storage.base import DOCUMENTS_TABLE
from edu_assist.types import Passage, SearchResult

logger = logging.getLogger(__name__)


class PostgrestStore:
    """Talks to `<url>/rest/v1` with a service-role key.

    Similarity search goes through the `match_documents` remote procedure;
    every non-success response is raised as `StorageError`.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def insert_passages(self, passages: list[Passage]) -> list[str]:
        rows = [
            {
                "title": p.title,
                "content": p.content,
                "source_file": p.source_file,
                "chunk_index": p.chunk_index,
                "total_chunks": p.total_chunks,
                "metadata": p.metadata,
                "embedding": p.embedding,
            }
            for p in passages
        ]
        data = await self._request(
            "POST",
            DOCUMENTS_TABLE,
            params={"select": "id"},
            json=rows,
            prefer="return=representation",
        )
        return [str(row["id"]) for row in data]

    async def source_exists(self, source_file: str) -> bool:
        data = await self._request(
            "GET",
            DOCUMENTS_TABLE,
            params={"select": "id", "source_file": f"eq.{source_file}", "limit": "1"},
        )
        return bool(data)

    async def match_documents(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[SearchResult]:
        data = await self._request(
            "POST",
            "rpc/match_documents",
            json={
                "query_embedding": query_embedding,
                "match_threshold": match_threshold,
                "match_count": match_count,
            },
        )
        return [
            SearchResult(
                id=str(row.get("id", "")),
                title=row.get("title") or "",
                content=row.get("content") or "",
                source_file=row.get("source_file") or "",
                chunk_index=int(row.get("chunk_index") or 0),
                similarity=float(row.get("similarity") or 0.0),
                metadata=row.get("metadata") or {},
            )
            for row in data or []
        ]

    async def list_documents(self) -> list[dict[str, Any]]:
        return await self._request(
            "GET",
            DOCUMENTS_TABLE,
            params={
                "select": "source_file,title,metadata",
                "order": "source_file.asc,chunk_index.asc",
            },
        )

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        payload = {"created_at": _now(), **record}
        data = await self._request("POST", table, json=payload, prefer="return=representation")
        if not data:
            raise StorageError(f"Insert into {table} returned no row")
        return data[0]

    async def get(self, table: str, record_id: str) -> dict[str, Any] | None:
        data = await self._request(
            "GET", table, params={"select": "*", "id": f"eq.{record_id}", "limit": "1"}
        )
        return data[0] if data else None

    async def list(
        self, table: str, *, order_by: str = "created_at", descending: bool = True
    ) -> list[dict[str, Any]]:
        direction = "desc" if descending else "asc"
        return await self._request(
            "GET", table, params={"select": "*", "order": f"{order_by}.{direction}"}
        )

    async def update(
        self, table: str, record_id: str, values: dict[str, Any]
    ) -> dict[str, Any] | None:
        data = await self._request(
            "PATCH",
            table,
            params={"id": f"eq.{record_id}"},
            json=values,
            prefer="return=representation",
        )
        return data[0] if data else None

    async def delete(self, table: str, record_id: str) -> bool:
        data = await self._request(
            "DELETE",
            table,
            params={"id": f"eq.{record_id}"},
            prefer="return=representation",
        )
        return bool(data)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = await self._http.request(
                method,
                f"{self.base_url}/{path}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage request failed: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("%s %s failed (%s): %s", method, path, response.status_code, message)
            raise StorageError(message)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StorageError(f"{method} {path} returned invalid JSON") from exc


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

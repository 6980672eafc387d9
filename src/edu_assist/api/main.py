"""FastAPI entrypoint for chat, ingest, search, sessions and saved objectives."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from edu_assist.api.dependencies import AppServices, build_services, get_services
from edu_assist.api.schemas import (
    IngestRequest,
    SaveObjectivesRequest,
    SearchRequest,
    SessionPayload,
    parse_chat_request,
)
from edu_assist.config import Settings, get_settings
from edu_assist.errors import EduAssistError, ProtocolError
from edu_assist.gateways.context import build_gateways
from edu_assist.log import configure_logging
from edu_assist.storage.base import SAVED_OBJECTIVES_TABLE, SESSIONS_TABLE
from edu_assist.streaming.transport import sse_stream

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health(services: AppServices = Depends(get_services)) -> dict[str, Any]:
    return {
        "status": "ok",
        "gemini_configured": services.gemini_configured,
        "supabase_configured": services.supabase_configured,
        "tools": services.registry.names(),
    }


@router.post("/chat")
async def chat(request: Request, services: AppServices = Depends(get_services)) -> StreamingResponse:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ProtocolError("Request body must be JSON") from exc
    chat_request = parse_chat_request(body)

    events = services.orchestrator.stream(chat_request.messages)
    return StreamingResponse(
        sse_stream(events, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/ingest")
async def ingest(request: IngestRequest, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    if request.documents is not None:
        results = await services.ingest.ingest_many([doc.to_document() for doc in request.documents])
        return {"success": True, "results": [result.as_payload() for result in results]}
    if request.document is not None:
        result = await services.ingest.ingest_document(request.document.to_document())
        return {"success": True, "results": result.as_payload()}
    raise ProtocolError('Either "document" or "documents" array is required')


@router.post("/search")
async def search(request: SearchRequest, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    hits = await services.search.search(request.query, request.top_k)
    return {"items": [hit.as_payload() for hit in hits]}


@router.get("/sessions")
async def list_sessions(services: AppServices = Depends(get_services)) -> dict[str, Any]:
    sessions = await services.gateways.store.list(SESSIONS_TABLE, order_by="updated_at")
    return {"sessions": sessions}


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    session = await services.gateways.store.get(SESSIONS_TABLE, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"session": session}


@router.post("/sessions")
async def create_session(
    payload: SessionPayload, services: AppServices = Depends(get_services)
) -> dict[str, Any]:
    now = _now()
    session = await services.gateways.store.insert(
        SESSIONS_TABLE,
        {
            "title": payload.title,
            "messages": payload.messages or [],
            "created_at": now,
            "updated_at": now,
        },
    )
    return {"session": session}


@router.put("/sessions/{session_id}")
async def update_session(
    session_id: str, payload: SessionPayload, services: AppServices = Depends(get_services)
) -> dict[str, Any]:
    values = payload.model_dump(exclude_none=True)
    values["updated_at"] = _now()
    session = await services.gateways.store.update(SESSIONS_TABLE, session_id, values)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"session": session}


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    if not await services.gateways.store.delete(SESSIONS_TABLE, session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"success": True}


@router.post("/save-objectives")
async def save_objectives(
    payload: SaveObjectivesRequest, services: AppServices = Depends(get_services)
) -> dict[str, Any]:
    if payload.missing_required():
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: topic, objectives_text, objective_count",
        )
    record = await services.gateways.store.insert(
        SAVED_OBJECTIVES_TABLE,
        {**payload.model_dump(), "created_at": _now()},
    )
    return {"success": True, "data": record}


@router.get("/saved-objectives")
async def list_saved_objectives(services: AppServices = Depends(get_services)) -> dict[str, Any]:
    items = await services.gateways.store.list(SAVED_OBJECTIVES_TABLE, order_by="created_at")
    return {"items": items}


@router.delete("/saved-objectives/{objective_id}")
async def delete_saved_objective(
    objective_id: str, services: AppServices = Depends(get_services)
) -> dict[str, Any]:
    if not await services.gateways.store.delete(SAVED_OBJECTIVES_TABLE, objective_id):
        raise HTTPException(status_code=404, detail=f"Saved objectives not found: {objective_id}")
    return {"success": True}


async def _handle_app_error(request: Request, exc: EduAssistError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.services.gateways.aclose()


def create_app(services: AppServices | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the app; tests pass prebuilt services backed by fakes."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if services is None:
        services = build_services(build_gateways(settings), agent_config=settings.agent_config())
        services.gemini_configured = bool(settings.gemini_api_key)
        services.supabase_configured = bool(
            settings.supabase_url and settings.supabase_service_role_key
        )

    app = FastAPI(title="EduAssist", version="0.1.0", lifespan=_lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    app.add_exception_handler(EduAssistError, _handle_app_error)
    app.include_router(router)
    return app


app = create_app()

from __future__ import annotations

from fastapi import APIRouter, Header, HTTPException, Request, status

from hashref_service.app.models import (
    CreateSessionRequest,
    CreateSessionResponse,
    EndSessionResponse,
    ReferenceTableSummary,
    SessionTablesResponse,
    ToolCallRequest,
    ToolCallResponse,
)
from hashref_service.app.settings import Settings, settings
from hashref_service.app.store import InMemorySessionStore
from libs.common.logging import get_logger

router = APIRouter(prefix="/v1")
health_router = APIRouter()
logger = get_logger("hashref_service.routes")


def _get_settings(request: Request) -> Settings:
    configured = getattr(request.app.state, "settings", None)
    if isinstance(configured, Settings):
        return configured
    return settings


def _check_auth(request: Request, authorization: str) -> None:
    if authorization != f"Bearer {_get_settings(request).api_token}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="인증에 실패했어요.")


def _get_store(request: Request) -> InMemorySessionStore:
    return request.app.state.store  # type: ignore[no-any-return]


@health_router.get("/health/live")
async def health_live() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(
    request: Request,
    req: CreateSessionRequest,
    authorization: str = Header(default=""),
) -> CreateSessionResponse:
    _check_auth(request, authorization)
    app_settings = _get_settings(request)
    record = await _get_store(request).create_session(
        req.idempotency_key,
        workspace_root=app_settings.workspace_root,
        enforce_hash_protocol=app_settings.enforce_hash_protocol,
        expand_line_ranges=app_settings.expand_line_ranges,
        max_read_lines=app_settings.max_read_lines,
        max_read_bytes=app_settings.max_read_bytes,
    )
    logger.info("session_created", session_id=record.session_id, workspace_root=record.workspace_root)
    return CreateSessionResponse(
        session_id=record.session_id,
        status=record.status.value,
        tools=record.registry.to_specs(),
    )


@router.delete("/sessions/{session_id}", response_model=EndSessionResponse)
async def end_session(
    request: Request,
    session_id: str,
    authorization: str = Header(default=""),
) -> EndSessionResponse:
    _check_auth(request, authorization)
    record = await _get_store(request).end_session(session_id)
    logger.info("session_ended", session_id=session_id)
    return EndSessionResponse(session_id=record.session_id, status=record.status.value)


@router.get("/sessions/{session_id}/tables", response_model=SessionTablesResponse)
async def get_session_tables(
    request: Request,
    session_id: str,
    authorization: str = Header(default=""),
) -> SessionTablesResponse:
    _check_auth(request, authorization)
    record = await _get_store(request).get_session(session_id)
    return SessionTablesResponse(
        session_id=record.session_id,
        tables=[ReferenceTableSummary(**summary) for summary in record.coordinator.describe_tables()],
    )


@router.post("/sessions/{session_id}/tools/{tool_name}", response_model=ToolCallResponse)
async def call_tool(
    request: Request,
    session_id: str,
    tool_name: str,
    req: ToolCallRequest,
    authorization: str = Header(default=""),
) -> ToolCallResponse:
    _check_auth(request, authorization)
    record = await _get_store(request).get_active_session(session_id)
    result = await record.registry.call(tool_name, req.arguments)
    logger.info(
        "tool_called",
        session_id=session_id,
        tool=tool_name,
        ok=result.ok,
        error_code=result.metadata.get("error_code"),
    )
    return ToolCallResponse(ok=result.ok, output=result.output, error=result.error, metadata=result.metadata)

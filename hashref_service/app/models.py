from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    idempotency_key: str = Field(min_length=1)


class CreateSessionResponse(BaseModel):
    session_id: str
    status: str
    tools: list[dict[str, Any]]


class EndSessionResponse(BaseModel):
    session_id: str
    status: str


class ToolCallRequest(BaseModel):
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    ok: bool
    output: str = ""
    error: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class ReferenceTableSummary(BaseModel):
    path: str
    entries: int
    first_line: int | None = None
    last_line: int | None = None


class SessionTablesResponse(BaseModel):
    session_id: str
    tables: list[ReferenceTableSummary]

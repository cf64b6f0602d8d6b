from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, replace
from enum import Enum

from hashref_service.app.hashref.coordinator import HashrefCoordinator
from hashref_service.app.tools.defaults import build_default_tool_registry
from hashref_service.app.tools.registry import ToolRegistry
from libs.common.errors import ConflictError, NotFoundError


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"


class SessionNotFoundError(NotFoundError):
    """요청한 세션을 찾을 수 없어요."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"세션을 찾을 수 없어요: {session_id!r}")
        self.session_id = session_id


class SessionEndedError(ConflictError):
    """이미 종료된 세션에 도구 호출이 들어왔어요."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"이미 종료된 세션이에요: {session_id!r}", retryable=False)
        self.session_id = session_id


@dataclass(slots=True, frozen=True)
class SessionRecord:
    """편집 세션 하나예요. 해시 테이블은 세션의 코디네이터가 소유해요."""

    session_id: str
    workspace_root: str
    status: SessionStatus
    coordinator: HashrefCoordinator
    registry: ToolRegistry


class InMemorySessionStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, SessionRecord] = {}
        self._by_idempotency: dict[str, str] = {}

    async def create_session(
        self,
        idempotency_key: str,
        *,
        workspace_root: str,
        enforce_hash_protocol: bool = True,
        expand_line_ranges: bool = True,
        max_read_lines: int = 2000,
        max_read_bytes: int = 500_000,
    ) -> SessionRecord:
        async with self._lock:
            existing_session_id = self._by_idempotency.get(idempotency_key)
            if existing_session_id is not None:
                return self._sessions[existing_session_id]

            coordinator = HashrefCoordinator(
                workspace_root=workspace_root,
                enforce_hash_protocol=enforce_hash_protocol,
                expand_line_ranges=expand_line_ranges,
            )
            record = SessionRecord(
                session_id=str(uuid.uuid4()),
                workspace_root=workspace_root,
                status=SessionStatus.ACTIVE,
                coordinator=coordinator,
                registry=build_default_tool_registry(
                    workspace_root=workspace_root,
                    coordinator=coordinator,
                    max_read_lines=max_read_lines,
                    max_read_bytes=max_read_bytes,
                ),
            )
            self._sessions[record.session_id] = record
            self._by_idempotency[idempotency_key] = record.session_id
            return record

    def _require(self, session_id: str) -> SessionRecord:
        record = self._sessions.get(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        return record

    async def get_session(self, session_id: str) -> SessionRecord:
        async with self._lock:
            return self._require(session_id)

    async def get_active_session(self, session_id: str) -> SessionRecord:
        async with self._lock:
            record = self._require(session_id)
            if record.status is not SessionStatus.ACTIVE:
                raise SessionEndedError(session_id)
            return record

    async def end_session(self, session_id: str) -> SessionRecord:
        async with self._lock:
            record = replace(self._require(session_id), status=SessionStatus.ENDED)
            record.coordinator.tables.clear()
            self._sessions[session_id] = record
            return record

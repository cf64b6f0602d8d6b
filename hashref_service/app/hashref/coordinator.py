"""도구 호출 흐름에 맞춰 해시 참조 테이블의 수명을 관리해요.

세션마다 코디네이터 하나가 테이블 저장소를 소유해요.

* 읽기가 끝나면 테이블을 만들거나(전체 읽기) 병합해요(부분 읽기).
* 편집 전에는 해시 참조를 정확 일치 치환으로 바꾸거나, 이미 해시가 있는
  파일에 대한 문자열 매칭 편집을 거부해요.
* 편집을 시도한 뒤에는 성공 여부와 상관없이 테이블을 버려요.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hashref_service.app.hashref.line_range import expand_line_range
from hashref_service.app.hashref.resolver import (
    HASH_FIELDS,
    EditRequest,
    PassThrough,
    ResolutionErrorKind,
    ResolutionFailure,
    ResolvedEdit,
    Resolver,
    read_text_file,
)
from hashref_service.app.hashref.table import ReferenceTable, ReferenceTableStore
from hashref_service.app.tools.base import ReadRecord, ToolResult, resolve_workspace_path
from hashref_service.app.tools.registry import ToolCallNext
from libs.common.errors import ValidationError
from libs.common.logging import get_logger

logger = get_logger("hashref_service.hashref.coordinator")

READ_TOOL_NAMES = frozenset({"file_read"})
EDIT_TOOL_NAMES = frozenset({"edit"})
WRITE_TOOL_NAMES = frozenset({"file_write"})


@dataclass(slots=True, frozen=True)
class EditDecision:
    """편집 전 판단 결과예요. ``failure``가 있으면 편집을 실행하지 않아요."""

    arguments: dict[str, Any]
    failure: ResolutionFailure | None = None

    @property
    def rejected(self) -> bool:
        return self.failure is not None


class HashrefCoordinator:
    def __init__(
        self,
        *,
        workspace_root: str = ".",
        enforce_hash_protocol: bool = True,
        expand_line_ranges: bool = True,
        read_file: Callable[[str], str] = read_text_file,
    ) -> None:
        self._workspace_root = Path(workspace_root).resolve()
        self._enforce_hash_protocol = enforce_hash_protocol
        self._expand_line_ranges = expand_line_ranges
        self._read_file = read_file
        self.tables = ReferenceTableStore()
        self.resolver = Resolver(self.tables, read_file=read_file)

    def resolve_path(self, raw_path: str) -> str:
        return str(resolve_workspace_path(self._workspace_root, raw_path))

    # ── 수명 주기 이벤트 ──────────────────────────────────────────────────

    def after_read(self, record: ReadRecord) -> ReferenceTable | None:
        """읽기 결과로 테이블을 만들거나 병합해요. 디렉터리 읽기는 무시해요."""
        if record.kind != "file":
            return None
        observed = ReferenceTable.from_lines(record.lines)
        if not observed:
            # 빈 파일이나 EOF 너머의 창은 해시 범위를 만들지 않아요.
            if not record.is_partial and self.tables.invalidate(record.path):
                logger.info("reference_table_invalidated", path=record.path)
            return self.tables.get(record.path)
        if record.is_partial:
            table = self.tables.merge(record.path, observed)
        else:
            table = self.tables.replace(record.path, observed)
        logger.info(
            "reference_table_updated",
            path=record.path,
            partial=record.is_partial,
            observed=len(observed),
            entries=len(table),
        )
        return table

    def before_edit(self, path: str, arguments: dict[str, Any]) -> EditDecision:
        if any(arguments.get(name) is not None for name in HASH_FIELDS):
            return self._resolve_hash_edit(path, arguments)

        old_string = arguments.get("old_string")
        if not isinstance(old_string, str):
            return EditDecision(arguments=arguments)

        if self._enforce_hash_protocol and self.tables.get(path):
            logger.info("legacy_edit_refused", path=path)
            return EditDecision(
                arguments=arguments,
                failure=ResolutionFailure(
                    kind=ResolutionErrorKind.HASH_REFERENCE_REQUIRED,
                    message=(
                        f"이 파일은 이미 해시 참조로 읽었어요: {path}\n"
                        "old_string 대신 start_hash/end_hash/after_hash와 content로 편집해 주세요."
                    ),
                ),
            )

        if self._expand_line_ranges:
            return EditDecision(arguments=self._expand_line_range(path, arguments, old_string))
        return EditDecision(arguments=arguments)

    def after_edit(self, path: str) -> None:
        if self.tables.invalidate(path):
            logger.info("reference_table_invalidated", path=path)

    # ── 레지스트리 인터셉터 ────────────────────────────────────────────────

    async def intercept(self, tool_name: str, arguments: dict[str, Any], proceed: ToolCallNext) -> ToolResult:
        tracked = READ_TOOL_NAMES | EDIT_TOOL_NAMES | WRITE_TOOL_NAMES
        raw_path = arguments.get("path")
        if tool_name not in tracked or not isinstance(raw_path, str) or not raw_path.strip():
            return await proceed(arguments)

        path = self.resolve_path(raw_path)
        async with self.tables.hold(path):
            if tool_name in READ_TOOL_NAMES:
                result = await proceed(arguments)
                if result.ok and result.record is not None:
                    self.after_read(result.record)
                return result

            if tool_name in EDIT_TOOL_NAMES:
                decision = self.before_edit(path, arguments)
                if decision.failure is not None:
                    return _failure_result(decision.failure)
                arguments = decision.arguments

            try:
                return await proceed(arguments)
            finally:
                self.after_edit(path)

    def describe_tables(self) -> list[dict[str, Any]]:
        described: list[dict[str, Any]] = []
        for path in self.tables.paths():
            table = self.tables.get(path)
            if table is None:
                continue
            line_numbers = table.line_numbers()
            described.append(
                {
                    "path": path,
                    "entries": len(table),
                    "first_line": line_numbers[0] if line_numbers else None,
                    "last_line": line_numbers[-1] if line_numbers else None,
                }
            )
        return described

    # ── 내부 구현 ──────────────────────────────────────────────────────────

    def _resolve_hash_edit(self, path: str, arguments: dict[str, Any]) -> EditDecision:
        try:
            request = EditRequest.from_arguments(path, arguments)
        except ValidationError as exc:
            return EditDecision(
                arguments=arguments,
                failure=ResolutionFailure(kind=ResolutionErrorKind.INVALID_REQUEST, message=exc.message),
            )

        outcome = self.resolver.resolve(request)
        if isinstance(outcome, ResolvedEdit):
            resolved = {key: value for key, value in arguments.items() if key not in HASH_FIELDS and key != "content"}
            resolved["old_string"] = outcome.old_string
            resolved["new_string"] = outcome.new_string
            resolved["line_hint"] = outcome.line_hint
            logger.info("hash_edit_resolved", path=path, line_hint=outcome.line_hint, insert=request.is_insert)
            return EditDecision(arguments=resolved)
        if isinstance(outcome, PassThrough):
            logger.info("hash_edit_passed_through", path=path, reason=outcome.reason)
            return EditDecision(arguments=arguments)
        return EditDecision(arguments=arguments, failure=outcome)

    def _expand_line_range(self, path: str, arguments: dict[str, Any], old_string: str) -> dict[str, Any]:
        try:
            text = self._read_file(path)
        except (OSError, UnicodeDecodeError):
            return arguments
        expanded = expand_line_range(old_string, text)
        if expanded is None:
            return arguments
        logger.info("line_range_expanded", path=path, line_range=old_string.strip())
        return {**arguments, "old_string": expanded}


def _failure_result(failure: ResolutionFailure) -> ToolResult:
    metadata: dict[str, Any] = {"error_code": failure.kind.value}
    if failure.reference is not None:
        metadata["reference"] = failure.reference
    return ToolResult(ok=False, error=failure.message, metadata=metadata)

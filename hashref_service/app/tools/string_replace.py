"""정확 일치 문자열 치환으로 파일을 편집하는 도구예요.

``old_string``이 파일에 글자 그대로 있어야만 ``new_string``으로 바꿔요.
해시 참조(``start_hash``/``end_hash``/``after_hash``)로 들어온 요청은
실행 전에 코디네이터가 ``old_string``/``new_string``/``line_hint``로 바꿔 줘요.

``line_hint``가 있으면 그 줄에서 시작하는 일치 위치를 우선 써요. 없거나
그 위치가 일치하지 않으면 파일 전체에서 딱 한 번 나타나야만 치환해요.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from hashref_service.app.hashref.hasher import format_lines_with_hash, split_lines
from hashref_service.app.tools.base import BaseTool, ToolResult, resolve_workspace_path


class StringReplaceTool(BaseTool):
    """파일의 특정 텍스트를 새 텍스트로 교체하는 도구예요."""

    def __init__(self, *, workspace_root: str = ".") -> None:
        self._workspace_root = Path(workspace_root).resolve()

    @property
    def name(self) -> str:
        return "edit"

    @property
    def description(self) -> str:
        return (
            "파일을 편집해요. file_read로 읽은 파일은 해시 참조로 편집해야 해요. "
            "start_hash만 주면 그 줄을, start_hash와 end_hash를 주면 두 줄 사이(포함)를 "
            "content로 교체해요. after_hash를 주면 그 줄 뒤에 content를 삽입해요. "
            "읽지 않은 파일은 old_string/new_string으로 교체하고, "
            "old_string에 '55-64' 같은 줄 범위를 줄 수도 있어요."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "수정할 파일 경로예요.",
                },
                "start_hash": {
                    "type": "string",
                    "description": "교체 시작 라인의 해시 참조('줄번호:해시')예요.",
                },
                "end_hash": {
                    "type": "string",
                    "description": "교체 끝 라인의 해시 참조예요. 생략하면 start_hash 한 줄만 교체해요.",
                },
                "after_hash": {
                    "type": "string",
                    "description": "이 라인 뒤에 content를 삽입해요. start_hash/end_hash와 함께 쓸 수 없어요.",
                },
                "content": {
                    "type": "string",
                    "description": "해시 참조 편집에서 교체하거나 삽입할 텍스트예요.",
                },
                "old_string": {
                    "type": "string",
                    "description": "교체할 기존 텍스트예요. 파일에 글자 그대로 있어야 해요.",
                },
                "new_string": {
                    "type": "string",
                    "description": "old_string 대신 들어갈 텍스트예요.",
                },
            },
            "required": ["path"],
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        raw_path = arguments.get("path")
        if not isinstance(raw_path, str) or not raw_path.strip():
            return ToolResult(ok=False, error="path 파라미터가 필요해요.")

        target = resolve_workspace_path(self._workspace_root, raw_path)
        if not target.is_file():
            return ToolResult(ok=False, error=f"파일을 찾을 수 없어요: {target}")

        old_string = arguments.get("old_string")
        new_string = arguments.get("new_string")
        if not isinstance(old_string, str) or not isinstance(new_string, str):
            return ToolResult(ok=False, error="old_string과 new_string 파라미터가 필요해요.")
        if old_string == new_string:
            return ToolResult(ok=False, error="old_string과 new_string이 같아서 바꿀 내용이 없어요.")

        try:
            text = target.read_text(encoding="utf-8")
        except (PermissionError, OSError, UnicodeDecodeError) as exc:
            return ToolResult(ok=False, error=f"파일 읽기에 실패했어요: {exc}")

        line_hint = arguments.get("line_hint")
        position = _match_at_line(text, old_string, line_hint) if isinstance(line_hint, int) else None
        if position is None:
            if not old_string:
                return ToolResult(ok=False, error="old_string이 비어 있어요.")
            occurrences = text.count(old_string)
            if occurrences == 0:
                return ToolResult(ok=False, error=f"old_string을 파일에서 찾을 수 없어요: {target}")
            if occurrences > 1:
                return ToolResult(
                    ok=False,
                    error=f"old_string이 {occurrences}군데에서 발견돼서 바꿀 위치를 정할 수 없어요. 주변 줄을 더 포함해 주세요.",
                )
            position = text.index(old_string)

        updated = text[:position] + new_string + text[position + len(old_string) :]
        try:
            target.write_text(updated, encoding="utf-8")
        except (PermissionError, OSError) as exc:
            return ToolResult(ok=False, error=f"파일 쓰기에 실패했어요: {exc}")

        start_line = text.count("\n", 0, position) + 1
        return _respond(target, updated, start_line, new_string)


def _match_at_line(text: str, old_string: str, line: int) -> int | None:
    """``line``번 줄의 시작 위치에서 ``old_string``이 일치하면 그 오프셋을 돌려줘요."""
    if line < 1:
        return None
    offset = 0
    for _ in range(line - 1):
        newline = text.find("\n", offset)
        if newline < 0:
            return None
        offset = newline + 1
    return offset if text.startswith(old_string, offset) else None


def _respond(target: Path, updated: str, start_line: int, new_string: str) -> ToolResult:
    """변경된 부분 주변을 hashline 포맷으로 미리 보여줘요."""
    lines = split_lines(updated)
    written_count = new_string.count("\n") + 1
    preview_start = max(1, start_line - 2)
    preview_end = min(len(lines), start_line + written_count + 1)
    preview = format_lines_with_hash(lines[preview_start - 1 : preview_end], start=preview_start)

    return ToolResult(
        ok=True,
        output=(f"파일을 수정했어요: {target}\n--- 변경 후 미리보기 ---\n" + "\n".join(preview)),
        metadata={
            "affected_start": start_line,
            "total_lines": len(lines),
        },
    )

"""파일을 생성하거나 덮어쓰는 도구예요.

덮어쓴 파일의 해시 참조 테이블은 코디네이터가 무효화해요.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from hashref_service.app.hashref.hasher import split_lines
from hashref_service.app.tools.base import BaseTool, ToolResult, resolve_workspace_path


class FileWriteTool(BaseTool):
    """파일에 내용을 기록하는 도구예요. 파일이 없으면 생성하고 있으면 덮어써요."""

    def __init__(self, *, workspace_root: str = ".") -> None:
        self._workspace_root = Path(workspace_root).resolve()

    @property
    def name(self) -> str:
        return "file_write"

    @property
    def description(self) -> str:
        return (
            "파일 전체 내용을 기록해요. "
            "파일이 없으면 새로 만들고, 있으면 덮어써요. "
            "기존 파일 일부만 바꿀 때는 edit 도구를 사용해요."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "기록할 파일 경로예요.",
                },
                "content": {
                    "type": "string",
                    "description": "파일에 기록할 텍스트 내용이에요.",
                },
            },
            "required": ["path", "content"],
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        raw_path = arguments.get("path")
        if not isinstance(raw_path, str) or not raw_path.strip():
            return ToolResult(ok=False, error="path 파라미터가 필요해요.")

        content = arguments.get("content")
        if not isinstance(content, str):
            return ToolResult(ok=False, error="content 파라미터가 필요해요.")

        target = resolve_workspace_path(self._workspace_root, raw_path)
        if target.is_dir():
            return ToolResult(ok=False, error=f"디렉터리에는 기록할 수 없어요: {target}")
        created = not target.exists()

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except (PermissionError, OSError) as exc:
            return ToolResult(ok=False, error=f"파일 쓰기에 실패했어요: {exc}")

        return ToolResult(
            ok=True,
            output=f"{'파일을 생성했어요' if created else '파일을 덮어썼어요'}: {target}",
            metadata={
                "created": created,
                "byte_count": len(content.encode("utf-8")),
                "line_count": len(split_lines(content)),
            },
        )

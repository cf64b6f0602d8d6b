"""기본 내장 도구와 해시 참조 코디네이터를 연결한 ToolRegistry를 생성하는 팩토리예요."""

from __future__ import annotations

from hashref_service.app.hashref.coordinator import HashrefCoordinator
from hashref_service.app.tools.file_read import FileReadTool
from hashref_service.app.tools.file_write import FileWriteTool
from hashref_service.app.tools.registry import ToolRegistry
from hashref_service.app.tools.string_replace import StringReplaceTool


def build_default_tool_registry(
    *,
    workspace_root: str = ".",
    coordinator: HashrefCoordinator | None = None,
    max_read_lines: int = 2000,
    max_read_bytes: int = 500_000,
) -> ToolRegistry:
    """기본 내장 도구가 모두 등록된 `ToolRegistry`를 생성해요.

    Args:
        workspace_root: 파일 도구가 기준으로 사용할 작업 디렉터리예요.
        coordinator: 읽기/편집 흐름에 끼어들 코디네이터예요. 없으면 새로 만들어요.
        max_read_lines: file_read 한 번에 돌려줄 최대 줄 수예요.
        max_read_bytes: file_read가 읽을 최대 바이트 수예요.

    Returns:
        file_read, edit, file_write가 등록된 `ToolRegistry` 인스턴스예요.
    """
    registry = ToolRegistry()
    registry.register(
        FileReadTool(workspace_root=workspace_root, max_lines=max_read_lines, max_bytes=max_read_bytes)
    )
    registry.register(StringReplaceTool(workspace_root=workspace_root))
    registry.register(FileWriteTool(workspace_root=workspace_root))
    # file_read가 만든 해시 테이블을 edit가 해석하고, 편집 뒤에 버려요.
    registry.add_interceptor(coordinator or HashrefCoordinator(workspace_root=workspace_root))
    return registry

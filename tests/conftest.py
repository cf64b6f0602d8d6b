from __future__ import annotations

from pathlib import Path

import pytest
from hashref_service.app.hashref.coordinator import HashrefCoordinator
from hashref_service.app.tools.defaults import build_default_tool_registry
from hashref_service.app.tools.registry import ToolRegistry


class FakeDisk:
    """읽기 횟수를 세는 가짜 파일 소스예요."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.reads = 0

    def __call__(self, path: str) -> str:
        self.reads += 1
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]


@pytest.fixture
def fake_disk() -> FakeDisk:
    return FakeDisk()


@pytest.fixture
def coordinator(tmp_path: Path) -> HashrefCoordinator:
    """tmp_path를 workspace로 쓰는 새 코디네이터예요."""
    return HashrefCoordinator(workspace_root=str(tmp_path))


@pytest.fixture
def registry(tmp_path: Path, coordinator: HashrefCoordinator) -> ToolRegistry:
    """코디네이터가 연결된 기본 도구 레지스트리예요."""
    return build_default_tool_registry(workspace_root=str(tmp_path), coordinator=coordinator)

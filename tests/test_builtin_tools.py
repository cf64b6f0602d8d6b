"""내장 도구 시스템 테스트예요."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from hashref_service.app.hashref.hasher import compute_line_hash
from hashref_service.app.tools.base import BaseTool, ToolResult
from hashref_service.app.tools.defaults import build_default_tool_registry
from hashref_service.app.tools.file_read import FileReadTool
from hashref_service.app.tools.file_write import FileWriteTool
from hashref_service.app.tools.registry import ToolCallNext, ToolRegistry
from hashref_service.app.tools.string_replace import StringReplaceTool

# ─── ToolRegistry 테스트 ───


class _DummyTool(BaseTool):
    @property
    def name(self) -> str:
        return "dummy"

    @property
    def description(self) -> str:
        return "테스트용 더미 도구예요."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {"msg": {"type": "string"}}}

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        if arguments.get("explode"):
            raise RuntimeError("boom")
        return ToolResult(ok=True, output=f"echo: {arguments.get('msg', '')}")


class _RecordingInterceptor:
    def __init__(self, label: str, calls: list[str]) -> None:
        self._label = label
        self._calls = calls

    async def intercept(self, tool_name: str, arguments: dict[str, Any], proceed: ToolCallNext) -> ToolResult:
        self._calls.append(f"{self._label}:before")
        result = await proceed({**arguments, "msg": f"{arguments.get('msg', '')}+{self._label}"})
        self._calls.append(f"{self._label}:after")
        return result


class _DenyingInterceptor:
    async def intercept(self, tool_name: str, arguments: dict[str, Any], proceed: ToolCallNext) -> ToolResult:
        return ToolResult(ok=False, error="거부했어요.")


@pytest.mark.asyncio
async def test_registry_register_and_call() -> None:
    registry = ToolRegistry()
    registry.register(_DummyTool())
    assert "dummy" in registry
    assert len(registry) == 1
    result = await registry.call("dummy", {"msg": "hello"})
    assert result.ok is True
    assert "hello" in result.output


@pytest.mark.asyncio
async def test_registry_call_unknown_tool() -> None:
    registry = ToolRegistry()
    result = await registry.call("no_such_tool", {})
    assert result.ok is False
    assert "등록되지 않은" in result.error


@pytest.mark.asyncio
async def test_registry_wraps_tool_exceptions() -> None:
    registry = ToolRegistry()
    registry.register(_DummyTool())
    result = await registry.call("dummy", {"explode": True})
    assert result.ok is False
    assert "boom" in result.error


def test_registry_unregister_and_specs() -> None:
    registry = ToolRegistry()
    registry.register(_DummyTool())
    specs = registry.to_specs()
    assert specs[0]["name"] == "dummy"
    assert specs[0]["description"] == "테스트용 더미 도구예요."
    assert registry.unregister("dummy") is True
    assert "dummy" not in registry
    assert registry.unregister("dummy") is False


@pytest.mark.asyncio
async def test_registry_interceptors_wrap_in_registration_order() -> None:
    calls: list[str] = []
    registry = ToolRegistry()
    registry.register(_DummyTool())
    registry.add_interceptor(_RecordingInterceptor("outer", calls))
    registry.add_interceptor(_RecordingInterceptor("inner", calls))

    result = await registry.call("dummy", {"msg": "m"})
    assert result.output == "echo: m+outer+inner"
    assert calls == ["outer:before", "inner:before", "inner:after", "outer:after"]


@pytest.mark.asyncio
async def test_registry_interceptor_can_refuse() -> None:
    registry = ToolRegistry()
    registry.register(_DummyTool())
    registry.add_interceptor(_DenyingInterceptor())
    result = await registry.call("dummy", {"msg": "m"})
    assert result.ok is False
    assert result.error == "거부했어요."


def test_default_registry_has_all_tools() -> None:
    registry = build_default_tool_registry(workspace_root=".")
    assert set(registry.list_names()) == {"file_read", "edit", "file_write"}


# ─── FileReadTool 테스트 (Hashline 포맷) ───


@pytest.mark.asyncio
async def test_file_read_tool_hashline_format(tmp_path: Path) -> None:
    (tmp_path / "test.txt").write_text("line1\nline2\nline3\n", encoding="utf-8")
    tool = FileReadTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "test.txt"})
    assert result.ok is True
    assert f"1:{compute_line_hash('line1')}| line1" in result.output
    assert f"3:{compute_line_hash('line3')}| line3" in result.output
    assert result.metadata["total_lines"] == 3

    assert result.record is not None
    assert result.record.kind == "file"
    assert result.record.path == str((tmp_path / "test.txt").resolve())
    assert result.record.lines == ((1, "line1"), (2, "line2"), (3, "line3"))
    assert result.record.is_partial is False


@pytest.mark.asyncio
async def test_file_read_tool_with_offset_is_partial(tmp_path: Path) -> None:
    (tmp_path / "test.txt").write_text("a\nb\nc\nd\ne\n", encoding="utf-8")
    tool = FileReadTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "test.txt", "offset": 3, "limit": 2})
    assert result.ok is True
    assert f"3:{compute_line_hash('c')}| c" in result.output
    assert f"4:{compute_line_hash('d')}| d" in result.output
    assert "| a" not in result.output
    assert result.record is not None
    assert result.record.lines == ((3, "c"), (4, "d"))
    assert result.record.is_partial is True


@pytest.mark.asyncio
async def test_file_read_tool_byte_limit_drops_cut_line(tmp_path: Path) -> None:
    (tmp_path / "big.txt").write_text("aaaa\nbbbb\ncccc\n", encoding="utf-8")
    tool = FileReadTool(workspace_root=str(tmp_path), max_bytes=7)
    result = await tool.execute({"path": "big.txt"})
    assert result.ok is True
    assert result.metadata["truncated"] is True
    assert result.record is not None
    assert result.record.lines == ((1, "aaaa"),)
    assert result.record.is_partial is True


@pytest.mark.asyncio
async def test_file_read_tool_undecodable_bytes_have_no_record(tmp_path: Path) -> None:
    (tmp_path / "bin.txt").write_bytes(b"ok\n\xff\xfe\n")
    tool = FileReadTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "bin.txt"})
    assert result.ok is True
    assert result.metadata["hash_references"] is False
    assert result.record is None
    assert "디코딩할 수 없는" in result.output


@pytest.mark.asyncio
async def test_file_read_tool_byte_limit_inside_multibyte_char(tmp_path: Path) -> None:
    (tmp_path / "ko.txt").write_text("가\n나다\n", encoding="utf-8")
    tool = FileReadTool(workspace_root=str(tmp_path), max_bytes=6)
    result = await tool.execute({"path": "ko.txt"})
    assert result.ok is True
    assert result.metadata["hash_references"] is True
    assert result.record is not None
    assert result.record.lines == ((1, "가"),)


@pytest.mark.asyncio
async def test_file_read_tool_directory(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "file.txt").touch()
    tool = FileReadTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": str(tmp_path)})
    assert result.ok is True
    assert "sub/" in result.output
    assert "file.txt" in result.output
    assert result.record is not None
    assert result.record.kind == "directory"


@pytest.mark.asyncio
async def test_file_read_tool_not_found(tmp_path: Path) -> None:
    tool = FileReadTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "nonexistent.txt"})
    assert result.ok is False
    assert result.record is None


# ─── FileWriteTool 테스트 ───


@pytest.mark.asyncio
async def test_file_write_tool_creates_and_overwrites(tmp_path: Path) -> None:
    tool = FileWriteTool(workspace_root=str(tmp_path))
    created = await tool.execute({"path": "a/b/output.txt", "content": "hello\nworld"})
    assert created.ok is True
    assert created.metadata["created"] is True
    assert created.metadata["line_count"] == 2

    overwritten = await tool.execute({"path": "a/b/output.txt", "content": "bye\n"})
    assert overwritten.ok is True
    assert overwritten.metadata["created"] is False
    assert (tmp_path / "a" / "b" / "output.txt").read_text(encoding="utf-8") == "bye\n"


@pytest.mark.asyncio
async def test_file_write_tool_missing_content(tmp_path: Path) -> None:
    tool = FileWriteTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "x.txt"})
    assert result.ok is False


# ─── StringReplaceTool 테스트 ───


@pytest.mark.asyncio
async def test_string_replace_unique_match(tmp_path: Path) -> None:
    (tmp_path / "code.py").write_text("x = 1\ny = 2\nz = 3\n", encoding="utf-8")
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "code.py", "old_string": "y = 2", "new_string": "y = 20"})
    assert result.ok is True
    assert (tmp_path / "code.py").read_text(encoding="utf-8") == "x = 1\ny = 20\nz = 3\n"
    assert result.metadata["affected_start"] == 2
    assert f"2:{compute_line_hash('y = 20')}| y = 20" in result.output


@pytest.mark.asyncio
async def test_string_replace_not_found(tmp_path: Path) -> None:
    (tmp_path / "code.py").write_text("x = 1\n", encoding="utf-8")
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "code.py", "old_string": "y = 2", "new_string": "y = 3"})
    assert result.ok is False
    assert "찾을 수 없어요" in result.error


@pytest.mark.asyncio
async def test_string_replace_ambiguous_without_hint(tmp_path: Path) -> None:
    (tmp_path / "code.py").write_text("pass\npass\n", encoding="utf-8")
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "code.py", "old_string": "pass", "new_string": "return"})
    assert result.ok is False
    assert "2군데" in result.error


@pytest.mark.asyncio
async def test_string_replace_line_hint_picks_occurrence(tmp_path: Path) -> None:
    (tmp_path / "code.py").write_text("pass\npass\npass\n", encoding="utf-8")
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "code.py", "old_string": "pass", "new_string": "return", "line_hint": 3})
    assert result.ok is True
    assert (tmp_path / "code.py").read_text(encoding="utf-8") == "pass\npass\nreturn\n"


@pytest.mark.asyncio
async def test_string_replace_wrong_hint_falls_back_to_unique_match(tmp_path: Path) -> None:
    (tmp_path / "code.py").write_text("a\nb\nc\n", encoding="utf-8")
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "code.py", "old_string": "c", "new_string": "C", "line_hint": 1})
    assert result.ok is True
    assert (tmp_path / "code.py").read_text(encoding="utf-8") == "a\nb\nC\n"


@pytest.mark.asyncio
async def test_string_replace_rejects_empty_and_identical(tmp_path: Path) -> None:
    (tmp_path / "code.py").write_text("a\n", encoding="utf-8")
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    empty = await tool.execute({"path": "code.py", "old_string": "", "new_string": "x"})
    assert empty.ok is False
    identical = await tool.execute({"path": "code.py", "old_string": "a", "new_string": "a"})
    assert identical.ok is False


@pytest.mark.asyncio
async def test_string_replace_missing_file(tmp_path: Path) -> None:
    tool = StringReplaceTool(workspace_root=str(tmp_path))
    result = await tool.execute({"path": "nope.py", "old_string": "a", "new_string": "b"})
    assert result.ok is False
    assert "파일을 찾을 수 없어요" in result.error

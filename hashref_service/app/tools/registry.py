"""내장 도구를 등록하고 조회하는 레지스트리예요."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from hashref_service.app.tools.base import BaseTool, ToolResult
from libs.common.logging import get_logger

logger = get_logger("hashref_service.tools.registry")

ToolCallNext = Callable[[dict[str, Any]], Awaitable[ToolResult]]


class ToolInterceptor(Protocol):
    """도구 실행 전후에 끼어드는 훅이에요.

    ``proceed``를 호출하지 않고 `ToolResult`를 돌려주면 실행을 거부한 거예요.
    ``proceed``에 넘기는 인자는 원래 인자를 바꾼 것이어도 돼요.
    """

    async def intercept(self, tool_name: str, arguments: dict[str, Any], proceed: ToolCallNext) -> ToolResult: ...


class ToolRegistry:
    """도구를 이름으로 관리하는 중앙 레지스트리예요.

    등록된 인터셉터는 등록 순서대로 바깥에서 안쪽으로 감싸요.

    사용법::

        registry = ToolRegistry()
        registry.register(FileReadTool(workspace_root="/home/user/project"))
        registry.add_interceptor(coordinator)

        result = await registry.call("file_read", {"path": "main.py"})
    """

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._interceptors: list[ToolInterceptor] = []

    def register(self, tool: BaseTool) -> None:
        """도구를 레지스트리에 등록해요. 같은 이름이면 덮어씌워요."""
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> bool:
        """도구를 레지스트리에서 제거해요. 제거 성공 시 True를 반환해요."""
        return self._tools.pop(name, None) is not None

    def add_interceptor(self, interceptor: ToolInterceptor) -> None:
        self._interceptors.append(interceptor)

    def get(self, name: str) -> BaseTool | None:
        """이름으로 도구를 조회해요."""
        return self._tools.get(name)

    def list_names(self) -> list[str]:
        """등록된 모든 도구 이름을 반환해요."""
        return list(self._tools.keys())

    def to_specs(self) -> list[dict[str, Any]]:
        return [tool.to_spec() for tool in self._tools.values()]

    async def call(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """이름으로 도구를 찾아 인터셉터를 거쳐 실행해요.

        등록되지 않은 도구면 실패 `ToolResult`를 반환해요.
        """
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult(ok=False, error=f"등록되지 않은 도구예요: {name}")

        proceed: ToolCallNext = tool.execute
        for interceptor in reversed(self._interceptors):
            proceed = _bind(interceptor, name, proceed)

        try:
            return await proceed(dict(arguments))
        except Exception as exc:
            logger.exception("tool_call_failed", tool=name, error=str(exc))
            return ToolResult(ok=False, error=f"도구 실행 중 오류가 발생했어요: {exc}")

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


def _bind(interceptor: ToolInterceptor, name: str, proceed: ToolCallNext) -> ToolCallNext:
    async def call_next(arguments: dict[str, Any]) -> ToolResult:
        return await interceptor.intercept(name, arguments, proceed)

    return call_next

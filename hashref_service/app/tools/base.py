"""내장 도구의 추상 기반 클래스예요.

새 도구를 추가하려면 `BaseTool`을 상속하고 `name`, `description`,
`input_schema`, `execute`를 구현하면 돼요.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True, frozen=True)
class ReadRecord:
    """읽기 도구 결과를 구조화한 레코드예요.

    포맷된 출력 문자열을 다시 파싱하지 않도록 읽은 라인을 그대로 담아요.
    """

    path: str
    """읽은 파일의 절대 경로예요."""

    kind: str
    """``"file"`` 또는 ``"directory"``예요."""

    lines: tuple[tuple[int, str], ...] = ()
    """``(줄번호, 원문)`` 쌍이에요. 줄번호는 1부터 시작해요."""

    is_partial: bool = False
    """offset/limit이나 바이트 제한 때문에 파일 일부만 읽었는지 여부예요."""


@dataclass(slots=True)
class ToolResult:
    """도구 실행 결과를 담는 컨테이너예요."""

    ok: bool
    """실행 성공 여부예요."""

    output: str = ""
    """성공 시 텍스트 결과예요."""

    error: str = ""
    """실패 시 오류 메시지예요."""

    metadata: dict[str, Any] = field(default_factory=dict)
    """추가 메타데이터 (바이트 수, 줄 수, 오류 코드 등)예요."""

    record: ReadRecord | None = None
    """읽기 도구가 채우는 구조화된 읽기 결과예요."""


def resolve_workspace_path(workspace_root: Path, raw_path: str) -> Path:
    """상대 경로면 workspace 기준으로 붙이고 정규화한 절대 경로를 돌려줘요."""
    target = Path(raw_path.strip())
    if not target.is_absolute():
        target = workspace_root / target
    return target.resolve()


class BaseTool(abc.ABC):
    """모든 내장 도구가 구현해야 하는 추상 클래스예요.

    확장 방법:
        1. `BaseTool`을 상속하는 클래스를 만들어요.
        2. `name`, `description`, `input_schema` 프로퍼티를 구현해요.
        3. `execute` 메서드에 실제 로직을 작성해요.
        4. `ToolRegistry.register()`로 등록하면 끝이에요.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """도구의 고유 이름이에요."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """도구가 무엇을 하는지 설명하는 문장이에요."""

    @property
    @abc.abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema 형식의 입력 파라미터 정의예요."""

    @abc.abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """도구를 실행하고 결과를 반환해요.

        Args:
            arguments: `input_schema`에 정의된 형태의 파라미터 딕셔너리예요.

        Returns:
            실행 결과를 담은 `ToolResult` 인스턴스예요.
        """

    def to_spec(self) -> dict[str, Any]:
        """호출자에게 노출할 도구 스펙 딕셔너리를 생성해요."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

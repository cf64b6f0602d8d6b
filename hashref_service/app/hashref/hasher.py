"""라인 해시와 해시 참조 유틸리티예요.

각 라인의 끝 공백을 제거한 내용으로 3글자 16진 해시를 만들어요.
편집 요청은 라인을 ``줄번호:해시`` 형태의 해시 참조로 가리켜요.

형식: ``줄번호:해시| 코드내용``
예시: ``42:a3f| def hello():``
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from libs.common.errors import ValidationError

HASH_WIDTH = 3
_HASH_MASK = (1 << (HASH_WIDTH * 4)) - 1
_UINT32_MASK = 0xFFFFFFFF
_REFERENCE_RE = re.compile(r"^(\d+):([0-9a-f]{3})$")


def compute_line_hash(content: str) -> str:
    """라인 내용으로부터 3글자 해시를 생성해요.

    끝 공백(개행, ``\\r`` 포함)을 제거한 텍스트의 문자 코드를 순서대로
    굴려서(``h * 31 + code``) 부호 없는 32비트로 유지하고, 하위 12비트를
    16진수 3글자로 표현해요. 암호학적 성질은 없고 충돌은 줄 번호로 구분해요.

    Args:
        content: 원본 라인 텍스트예요.

    Returns:
        0으로 채운 소문자 16진 해시 3글자예요.
    """
    value = 0
    for char in content.rstrip():
        value = (value * 31 + ord(char)) & _UINT32_MASK
    return f"{value & _HASH_MASK:0{HASH_WIDTH}x}"


def split_lines(text: str) -> list[str]:
    """파일 텍스트를 줄 번호 규칙에 맞게 라인 목록으로 나눠요.

    ``\\n`` 기준으로 나누고, 마지막 개행 뒤의 빈 조각은 라인으로 치지 않아요.
    ``\\r``은 원문 그대로 라인에 남겨서 정확 일치 치환이 가능하게 해요.
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


@dataclass(slots=True, frozen=True)
class HashReference:
    """``줄번호:해시`` 형태의 라인 참조예요. 두 필드가 모두 같아야 같은 참조예요."""

    line: int
    hash: str

    @classmethod
    def for_line(cls, line: int, content: str) -> HashReference:
        return cls(line=line, hash=compute_line_hash(content))

    def __str__(self) -> str:
        return f"{self.line}:{self.hash}"


def parse_hash_reference(text: str) -> HashReference:
    """``"42:a3f"`` 같은 문자열을 `HashReference`로 변환해요.

    Raises:
        ValidationError: 형식이 틀렸거나 줄 번호가 1보다 작을 때 발생해요.
    """
    match = _REFERENCE_RE.match(text.strip())
    if match is None:
        raise ValidationError(
            f"해시 참조 형식이 올바르지 않아요: {text!r} ('줄번호:해시' 형식, 해시는 소문자 16진수 3글자예요)"
        )
    line = int(match.group(1))
    if line < 1:
        raise ValidationError(f"줄 번호는 1 이상이어야 해요: {text!r}")
    return HashReference(line=line, hash=match.group(2))


def format_lines_with_hash(lines: list[str], *, start: int = 1) -> list[str]:
    """라인 목록에 ``줄번호:해시| 내용`` 형식을 적용해요.

    Args:
        lines: 원본 라인 문자열 리스트예요.
        start: 시작 줄 번호(1-indexed)예요.

    Returns:
        hashline 포맷이 적용된 문자열 리스트예요.
    """
    result: list[str] = []
    for i, line in enumerate(lines, start=start):
        shown = line.rstrip("\r")
        result.append(f"{HashReference.for_line(i, line)}| {shown}")
    return result

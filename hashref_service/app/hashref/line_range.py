"""``old_string`` 자리에 들어온 줄 번호 범위를 실제 텍스트로 펼쳐요.

해시를 쓰지 않는 호출자가 ``"55-64"``처럼 줄 범위만 넘겨도 편집할 수 있게 해요.
참조 테이블과는 상관없이 현재 파일 내용만 봐요.
"""

from __future__ import annotations

import re

from hashref_service.app.hashref.hasher import split_lines

_LINE_RANGE_RE = re.compile(r"^(\d+)(?:\s*-\s*(\d+))?$")


def parse_line_range(text: str) -> tuple[int, int] | None:
    """``"55"`` 또는 ``"55-64"``를 ``(시작, 끝)``으로 바꿔요. 범위 표현이 아니면 None이에요."""
    match = _LINE_RANGE_RE.match(text.strip())
    if match is None:
        return None
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else start
    return start, end


def expand_line_range(old_string: str, file_text: str) -> str | None:
    """줄 범위 표현을 해당 줄들의 원문으로 바꿔요.

    ``old_string``이 파일에 그대로 있으면 범위로 보지 않아요. 범위가 파일
    밖이거나 거꾸로면 None을 돌려주고, 판단은 편집 도구에 맡겨요.
    """
    if old_string in file_text:
        return None
    parsed = parse_line_range(old_string)
    if parsed is None:
        return None

    start, end = parsed
    lines = split_lines(file_text)
    if start < 1 or end > len(lines) or start > end:
        return None
    expanded = "\n".join(lines[start - 1 : end])
    return expanded[:-1] if expanded.endswith("\r") else expanded

"""해시 참조 편집 요청을 정확 일치 치환으로 바꾸는 리졸버예요.

요청 형태는 세 가지예요.

* 한 줄 교체: ``start_hash``만 있어요.
* 범위 교체: ``start_hash``와 ``end_hash``가 모두 있어요. 끝 줄을 포함해요.
* 뒤에 삽입: ``after_hash``가 있어요. 기준 줄은 그대로 두고 뒤에 내용을 붙여요.

결과는 예외 대신 `ResolvedEdit`, `PassThrough`, `ResolutionFailure` 중
하나로 돌려줘요. 실패는 호출자가 파일을 다시 읽거나 요청을 고쳐야 하는
예상 가능한 상황이에요.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from hashref_service.app.hashref.hasher import HashReference, parse_hash_reference, split_lines
from hashref_service.app.hashref.table import ReferenceTable, ReferenceTableStore, build_table
from libs.common.errors import ValidationError
from libs.common.logging import get_logger

logger = get_logger("hashref_service.hashref.resolver")

HASH_FIELDS = ("start_hash", "end_hash", "after_hash")


class ResolutionErrorKind(str, Enum):
    STALE_REFERENCE = "STALE_REFERENCE"
    INVALID_RANGE = "INVALID_RANGE"
    INCOMPLETE_RANGE = "INCOMPLETE_RANGE"
    HASH_REFERENCE_REQUIRED = "HASH_REFERENCE_REQUIRED"
    INVALID_REQUEST = "INVALID_REQUEST"


@dataclass(slots=True, frozen=True)
class EditRequest:
    path: str
    content: str
    start: HashReference | None = None
    end: HashReference | None = None
    after: HashReference | None = None

    @property
    def is_insert(self) -> bool:
        return self.after is not None

    def references(self) -> list[HashReference]:
        return [ref for ref in (self.start, self.end, self.after) if ref is not None]

    @classmethod
    def from_arguments(cls, path: str, arguments: Mapping[str, Any]) -> EditRequest:
        """도구 인자에서 편집 요청을 만들어요.

        Raises:
            ValidationError: 해시 참조 형식이 틀렸거나 요청 형태가 섞여 있을 때 발생해요.
        """
        raw = {name: arguments.get(name) for name in HASH_FIELDS}
        for name, value in raw.items():
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{name} 파라미터는 문자열이어야 해요.")

        content = arguments.get("content")
        if not isinstance(content, str):
            raise ValidationError("해시 참조로 편집하려면 content 파라미터가 필요해요.")

        if raw["after_hash"] is not None:
            if raw["start_hash"] is not None or raw["end_hash"] is not None:
                raise ValidationError("after_hash는 start_hash/end_hash와 함께 쓸 수 없어요.")
            return cls(path=path, content=content, after=parse_hash_reference(raw["after_hash"]))

        if raw["start_hash"] is None:
            raise ValidationError("end_hash만으로는 편집할 수 없어요. start_hash가 필요해요.")
        return cls(
            path=path,
            content=content,
            start=parse_hash_reference(raw["start_hash"]),
            end=parse_hash_reference(raw["end_hash"]) if raw["end_hash"] is not None else None,
        )


@dataclass(slots=True, frozen=True)
class ResolvedEdit:
    old_string: str
    new_string: str
    line_hint: int


@dataclass(slots=True, frozen=True)
class PassThrough:
    reason: str


@dataclass(slots=True, frozen=True)
class ResolutionFailure:
    kind: ResolutionErrorKind
    message: str
    reference: str | None = None


ResolveOutcome = Union[ResolvedEdit, PassThrough, ResolutionFailure]


def read_text_file(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


class Resolver:
    """세션의 테이블 저장소를 참조해서 편집 요청을 해석해요.

    테이블에 참조가 있어도 바로 믿지 않고, 참조한 줄들을 현재 디스크 내용과
    대조해요. 어긋나면 그때 읽은 내용으로 테이블을 한 번 다시 만들고 재검사해요.
    """

    def __init__(
        self,
        tables: ReferenceTableStore,
        *,
        read_file: Callable[[str], str] = read_text_file,
    ) -> None:
        self._tables = tables
        self._read_file = read_file

    def rebuild(self, path: str) -> ReferenceTable | None:
        """디스크에서 파일을 새로 읽어 테이블을 교체해요. 읽기에 실패하면 None이에요."""
        text = self._load(path)
        if text is None:
            return None
        return self._install(path, text)

    def resolve(self, request: EditRequest) -> ResolveOutcome:
        span = _span(request)
        if span is None:
            return ResolutionFailure(
                kind=ResolutionErrorKind.INVALID_REQUEST,
                message="편집할 위치를 가리키는 해시 참조가 없어요.",
            )
        first, last = span
        if last.line < first.line:
            return ResolutionFailure(
                kind=ResolutionErrorKind.INVALID_RANGE,
                message=(
                    f"end_hash({last})가 start_hash({first})보다 앞에 있어요. "
                    "범위는 앞에서 뒤로 지정해야 해요."
                ),
                reference=str(last),
            )

        table = self._tables.get(request.path)
        fresh = False
        if table is None:
            table = self.rebuild(request.path)
            if table is None:
                return PassThrough(reason="unreadable_file")
            fresh = True

        missing = _first_missing(table, request)
        if missing is not None and not fresh:
            table = self.rebuild(request.path)
            if table is None:
                self._tables.invalidate(request.path)
                return PassThrough(reason="unreadable_file")
            fresh = True
            missing = _first_missing(table, request)
        if missing is not None:
            return self._stale(request.path, missing)

        lines, gap = _collect_lines(table, first, last)
        if gap is not None:
            return self._incomplete(request.path, first, last, gap)

        if not fresh:
            text = self._load(request.path)
            if text is None:
                self._tables.invalidate(request.path)
                return PassThrough(reason="unreadable_file")
            if not _matches_disk(text, first.line, lines):
                logger.info("reference_table_drifted", path=request.path, start_line=first.line)
                table = self._install(request.path, text)
                missing = _first_missing(table, request)
                if missing is not None:
                    return self._stale(request.path, missing)
                lines, gap = _collect_lines(table, first, last)
                if gap is not None:
                    return self._incomplete(request.path, first, last, gap)

        return _build_edit(request, first, lines)

    def _load(self, path: str) -> str | None:
        try:
            return self._read_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.info("reference_table_unreadable", path=path, error=str(exc))
            return None

    def _install(self, path: str, text: str) -> ReferenceTable:
        table = self._tables.replace(path, build_table(text))
        logger.info("reference_table_rebuilt", path=path, entries=len(table))
        return table

    def _stale(self, path: str, missing: HashReference) -> ResolutionFailure:
        self._tables.invalidate(path)
        logger.warning("hash_reference_stale", path=path, reference=str(missing))
        return ResolutionFailure(
            kind=ResolutionErrorKind.STALE_REFERENCE,
            message=(
                f"해시 참조 {missing}에 해당하는 라인이 현재 파일에 없어요. "
                "파일을 다시 읽은 뒤 새 해시로 편집해 주세요."
            ),
            reference=str(missing),
        )

    def _incomplete(self, path: str, first: HashReference, last: HashReference, line: int) -> ResolutionFailure:
        self._tables.invalidate(path)
        logger.warning("hash_range_incomplete", path=path, missing_line=line)
        return ResolutionFailure(
            kind=ResolutionErrorKind.INCOMPLETE_RANGE,
            message=(
                f"{first}부터 {last}까지의 범위 중 {line}번 줄을 아직 읽지 않았어요. "
                "파일을 다시 읽은 뒤 편집해 주세요."
            ),
            reference=str(first),
        )


def _span(request: EditRequest) -> tuple[HashReference, HashReference] | None:
    if request.after is not None:
        return request.after, request.after
    if request.start is None:
        return None
    return request.start, request.end if request.end is not None else request.start


def _first_missing(table: ReferenceTable, request: EditRequest) -> HashReference | None:
    for reference in request.references():
        if reference not in table:
            return reference
    return None


def _collect_lines(
    table: ReferenceTable, first: HashReference, last: HashReference
) -> tuple[list[str], int | None]:
    """범위의 줄 내용을 모아요. 비어 있는 줄을 만나면 그 줄 번호를 함께 돌려줘요."""
    lines: list[str] = []
    for line in range(first.line, last.line + 1):
        if line == first.line:
            content = table.lookup_by_reference(first)
        elif line == last.line:
            content = table.lookup_by_reference(last)
        else:
            content = table.lookup_by_line(line)
        if content is None:
            return lines, line
        lines.append(content)
    return lines, None


def _matches_disk(text: str, first_line: int, lines: list[str]) -> bool:
    current = split_lines(text)[first_line - 1 : first_line - 1 + len(lines)]
    return current == lines


def _build_edit(request: EditRequest, first: HashReference, lines: list[str]) -> ResolvedEdit:
    if request.is_insert:
        anchor = lines[0]
        newline = "\r\n" if anchor.endswith("\r") else "\n"
        old_string = _without_carriage_return(anchor)
        return ResolvedEdit(
            old_string=old_string,
            new_string=f"{old_string}{newline}{request.content}",
            line_hint=first.line,
        )
    return ResolvedEdit(
        old_string=_without_carriage_return("\n".join(lines)),
        new_string=request.content,
        line_hint=first.line,
    )


def _without_carriage_return(text: str) -> str:
    # CRLF 파일에서 마지막 줄의 \r은 치환 범위 밖에 남겨요.
    return text[:-1] if text.endswith("\r") else text

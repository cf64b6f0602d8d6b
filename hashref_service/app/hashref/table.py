"""파일별 해시 참조 테이블이에요.

테이블은 ``(줄번호, 해시) → 라인 내용`` 매핑이에요. 부분 읽기(offset/limit)
결과도 병합할 수 있어서 줄 번호 사이에 빈 구간이 있을 수 있어요.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable, Iterator
from contextlib import asynccontextmanager

from hashref_service.app.hashref.hasher import HashReference, split_lines


class ReferenceTable:
    """한 파일에 대해 마지막으로 관찰한 라인들의 해시 참조 테이블이에요."""

    def __init__(self) -> None:
        self._entries: dict[HashReference, str] = {}

    @classmethod
    def from_lines(cls, lines: Iterable[tuple[int, str]]) -> ReferenceTable:
        """``(줄번호, 내용)`` 쌍으로 테이블을 만들어요."""
        table = cls()
        for line, content in lines:
            table._observe(HashReference.for_line(line, content), content)
        return table

    def _observe(self, reference: HashReference, content: str) -> None:
        # 같은 키를 다시 관찰하면 맨 뒤로 보내서 가장 최근 관찰로 취급해요.
        self._entries.pop(reference, None)
        self._entries[reference] = content

    def merge(self, partial: ReferenceTable) -> None:
        """다른 테이블의 항목을 합쳐요. 같은 키는 나중 값으로 덮어써요."""
        for reference, content in partial._entries.items():
            self._observe(reference, content)

    def lookup_by_reference(self, reference: HashReference) -> str | None:
        return self._entries.get(reference)

    def lookup_by_line(self, line: int) -> str | None:
        """줄 번호로 라인 내용을 찾아요.

        같은 줄 번호에 여러 해시가 관찰됐다면 가장 최근에 관찰한 값을 돌려줘요.
        """
        found: str | None = None
        for reference, content in self._entries.items():
            if reference.line == line:
                found = content
        return found

    def references(self) -> list[HashReference]:
        return sorted(self._entries, key=lambda ref: (ref.line, ref.hash))

    def line_numbers(self) -> list[int]:
        return sorted({ref.line for ref in self._entries})

    def __contains__(self, reference: object) -> bool:
        return reference in self._entries

    def __iter__(self) -> Iterator[HashReference]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceTable):
            return NotImplemented
        return self._entries == other._entries


def build_table(text: str) -> ReferenceTable:
    """파일 전체 텍스트로 테이블을 만들어요. 줄 번호는 1부터 시작해요."""
    return ReferenceTable.from_lines(enumerate(split_lines(text), start=1))


class ReferenceTableStore:
    """세션 하나가 소유하는 파일 경로별 테이블 저장소예요.

    경로마다 `asyncio.Lock`을 두어서 테이블 생성/병합/무효화가
    같은 경로에서 겹쳐 실행되지 않게 해요. 무효화된 뒤에 늦게 도착한
    병합이 오래된 항목을 되살리면 안 돼요. 잠금은 `hold`로 잡고 있는 호출이
    하나도 없으면 정리돼요.
    """

    def __init__(self) -> None:
        self._tables: dict[str, ReferenceTable] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def lock_for(self, path: str) -> asyncio.Lock:
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        return lock

    @asynccontextmanager
    async def hold(self, path: str) -> AsyncIterator[None]:
        """경로 잠금을 잡아요. 마지막 대기자가 빠져나가면 잠금을 지워요."""
        lock = self.lock_for(path)
        self._holders[path] = self._holders.get(path, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._holders[path] - 1
            if remaining:
                self._holders[path] = remaining
            else:
                del self._holders[path]
                if not lock.locked() and self._locks.get(path) is lock:
                    del self._locks[path]

    def lock_paths(self) -> list[str]:
        return sorted(self._locks)

    def get(self, path: str) -> ReferenceTable | None:
        return self._tables.get(path)

    def replace(self, path: str, table: ReferenceTable) -> ReferenceTable:
        self._tables[path] = table
        return table

    def merge(self, path: str, partial: ReferenceTable) -> ReferenceTable:
        """기존 테이블에 부분 테이블을 합쳐요. 기존 테이블이 없으면 새로 등록해요."""
        table = self._tables.get(path)
        if table is None:
            table = ReferenceTable()
            self._tables[path] = table
        table.merge(partial)
        return table

    def invalidate(self, path: str) -> bool:
        """경로의 테이블을 통째로 버려요. 버린 테이블이 있었으면 True예요."""
        return self._tables.pop(path, None) is not None

    def clear(self) -> None:
        self._tables.clear()
        self._locks = {
            path: lock for path, lock in self._locks.items() if path in self._holders or lock.locked()
        }

    def paths(self) -> list[str]:
        return sorted(self._tables)

    def __contains__(self, path: object) -> bool:
        return path in self._tables

    def __len__(self) -> int:
        return len(self._tables)

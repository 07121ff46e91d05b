from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Optional
from .statement import Statement

Record = Dict[str, Any]


class RecordCursor:
    """
    The records produced by one statement.

    Records are plain dicts keyed by the returned column names. ``stats``
    holds the update counters the endpoint reported, if any.
    """

    def __init__(
        self,
        statement: Statement,
        keys: Optional[Iterable[str]] = None,
        records: Optional[Iterable[Record]] = None,
        stats: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.statement = statement
        self.keys: List[str] = list(keys or [])
        self.records: List[Record] = list(records or [])
        self.stats: Dict[str, Any] = dict(stats or {})

    def size(self) -> int:
        return len(self.records)

    def first_record(self) -> Optional[Record]:
        return self.records[0] if self.records else None

    def values(self, key: str) -> List[Any]:
        return [record.get(key) for record in self.records]

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __repr__(self) -> str:
        return f"RecordCursor(statement={self.statement.text!r}, keys={self.keys!r}, records={len(self.records)})"


class ResultCollection:
    """Ordered per-statement cursors returned by a batch execution."""

    def __init__(self, results: Optional[Iterable[RecordCursor]] = None, tag: Optional[str] = None) -> None:
        self._results: List[RecordCursor] = list(results or [])
        self.tag = tag
        self.preflight_results: Optional[ResultCollection] = None

    @classmethod
    def with_result(cls, result: RecordCursor, tag: Optional[str] = None) -> ResultCollection:
        return cls([result], tag=tag)

    def add(self, result: RecordCursor) -> None:
        self._results.append(result)

    def results(self) -> List[RecordCursor]:
        return list(self._results)

    def size(self) -> int:
        return len(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[RecordCursor]:
        return iter(self._results)

    def __getitem__(self, index: int) -> RecordCursor:
        return self._results[index]

    def __repr__(self) -> str:
        return f"ResultCollection(size={len(self._results)}, tag={self.tag!r})"

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Optional


class ExecutionLog:
    """One executed statement, as recorded in the query history."""
    __slots__ = ("alias", "query", "parameters", "tag", "records", "error", "timestamp")

    def __init__(self, alias: Optional[str], query: str, parameters: Optional[Dict[str, Any]] = None,
                 tag: Optional[str] = None, records: Optional[int] = None, error: Optional[str] = None,
                 timestamp: Optional[datetime] = None):
        self.alias = alias
        self.query = query
        self.parameters = parameters or {}
        self.tag = tag
        self.records = records
        self.error = error
        self.timestamp = timestamp or datetime.now()

    @property
    def failed(self) -> bool:
        return self.error is not None

    def __repr__(self):
        return f"ExecutionLog({self.alias!r}, {self.query!r}, {self.parameters!r}, {self.tag!r}, records={self.records!r}, error={self.error!r})"

    def to_dict(self) -> dict:
        return {
            "alias": self.alias,
            "query": self.query,
            "parameters": {k: str(v) for k, v in self.parameters.items()},
            "tag": self.tag,
            "records": self.records,
            "error": self.error,
            "timestamp": self.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        }

    def __eq__(self, other):
        if not isinstance(other, ExecutionLog):
            return False
        return (
            self.alias == other.alias and
            self.query == other.query and
            self.parameters == other.parameters and
            self.tag == other.tag and
            self.records == other.records and
            self.error == other.error
        )

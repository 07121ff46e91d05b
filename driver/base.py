from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, TYPE_CHECKING

from ..result import RecordCursor, ResultCollection
from ..statement import Statement

if TYPE_CHECKING:
    from .transaction import DriverTransaction


class Pipeline:
    """
    Statements buffered client-side and sent to the session in one round trip.
    """

    def __init__(self, session: Session, tag: Optional[str] = None) -> None:
        self.session = session
        self.tag = tag
        self._statements: List[Statement] = []

    def push(self, query: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None) -> None:
        self._statements.append(Statement.create(query, parameters, tag))

    def push_statement(self, statement: Statement) -> None:
        self._statements.append(statement)

    async def run(self) -> ResultCollection:
        results = await self.session.flush(self)
        if results.tag is None:
            results.tag = self.tag
        return results

    def statements(self) -> List[Statement]:
        return list(self._statements)

    def size(self) -> int:
        return len(self._statements)


class Session(ABC):
    """
    One live session against an endpoint.

    Implementations raise :class:`TransportFailure` for every protocol or
    network level error.
    """
    current_transaction: Optional[DriverTransaction] = None

    @abstractmethod
    async def run(self, text: str, parameters: Optional[Mapping[str, Any]] = None,
                  tag: Optional[str] = None) -> RecordCursor:
        raise NotImplementedError()

    def create_pipeline(self, query: Optional[str] = None, parameters: Optional[Mapping[str, Any]] = None,
                        tag: Optional[str] = None) -> Pipeline:
        pipeline = Pipeline(self, tag)
        if query:
            pipeline.push(query, parameters, tag)
        return pipeline

    def transaction(self) -> DriverTransaction:
        from .transaction import DriverTransaction
        return DriverTransaction(self)

    @abstractmethod
    async def flush(self, pipeline: Pipeline) -> ResultCollection:
        raise NotImplementedError()

    @abstractmethod
    async def begin(self) -> Any:
        """Open a server-side transaction and return its id."""
        raise NotImplementedError()

    @abstractmethod
    async def push_to_transaction(self, transaction_id: Any, statements: List[Statement]) -> ResultCollection:
        raise NotImplementedError()

    @abstractmethod
    async def commit_transaction(self, transaction_id: Any) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def rollback_transaction(self, transaction_id: Any) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError()


class Driver(ABC):
    config: Any

    @property
    def timeout(self) -> Optional[float]:
        return self.config.timeout

    @abstractmethod
    def session(self) -> Session:
        raise NotImplementedError()

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError()

from __future__ import annotations
from typing import Any, List, Mapping, Optional, Type, Union
from logging import Logger, getLogger as logging_getLogger

from .driver.transaction import DriverTransaction, TransactionState
from .events import EventDispatcher
from .exceptions import IllegalStateError
from .result import RecordCursor, ResultCollection
from .stack import Stack, flatten
from .statement import Statement


class Transaction:
    """
    Client-level transaction wrapping one driver transaction.

    ``push`` and ``push_stack`` only queue work; ``commit`` sends the whole
    queue in one round trip before committing. ``run`` and ``run_stack`` send
    immediately. Every send is surrounded by PreRun/PostRun/Failure events.

    Usable as an async context manager:

        async with client.transaction() as tx:
            await tx.run("CREATE (n:Person {name: $name})", {"name": "Ada"})
    """

    def __init__(
        self,
        driver_transaction: DriverTransaction,
        event_dispatcher: EventDispatcher,
        connection_alias: Optional[str] = None,
        autocommit: bool = True,
        logger: Optional[Logger] = None,
    ) -> None:
        self.driver_transaction = driver_transaction
        self.event_dispatcher = event_dispatcher
        self.connection_alias = connection_alias
        self.autocommit = autocommit
        self.logger = logger or logging_getLogger(__name__)
        self._queue: List[Union[Statement, Stack]] = []

    async def __aenter__(self) -> Transaction:
        if self.driver_transaction.state is TransactionState.UNSTARTED:
            await self.begin()
        return self

    async def __aexit__(self, exc_type: Optional[Type[BaseException]],
                        exc_val: Optional[BaseException], exc_tb) -> None:
        if not self.is_open():
            return
        if exc_type is not None:
            self.logger.error(f"ROLLBACK transaction on {self.connection_alias!r}: {exc_val}")
            await self.rollback()
        elif self.autocommit:
            await self.commit()
        else:
            await self.rollback()

    # Queueing
    def push(self, query: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None) -> None:
        """Queue a statement without sending it."""
        self._queue.append(Statement.create(query, parameters, tag))

    def push_stack(self, stack: Stack) -> None:
        """Queue a stack without sending it."""
        self._queue.append(stack)

    @property
    def pending(self) -> List[Union[Statement, Stack]]:
        return list(self._queue)

    # Sending
    async def _ensure_started(self) -> None:
        if self.driver_transaction.is_closed():
            raise IllegalStateError("This transaction is closed")
        if self.driver_transaction.state is TransactionState.UNSTARTED:
            await self.driver_transaction.begin()

    async def run(self, query: str, parameters: Optional[Mapping[str, Any]] = None,
                  tag: Optional[str] = None) -> Optional[RecordCursor]:
        statement = Statement.create(query, parameters, tag)
        await self._ensure_started()
        results = await self.event_dispatcher.run_dispatched(
            [statement],
            lambda: self._run_one(statement),
            self.connection_alias,
        )
        return results[0] if results is not None else None

    async def _run_one(self, statement: Statement) -> ResultCollection:
        return ResultCollection.with_result(await self.driver_transaction.run(statement))

    async def run_stack(self, stack: Stack) -> Optional[ResultCollection]:
        await self._ensure_started()
        statements = stack.statements()
        results = await self.event_dispatcher.run_dispatched(
            statements,
            lambda: self.driver_transaction.run_multiple(statements),
            self.connection_alias,
        )
        if results is not None and results.tag is None:
            results.tag = stack.tag
        return results

    async def begin(self) -> None:
        await self.driver_transaction.begin()

    async def commit(self) -> Optional[ResultCollection]:
        """
        Send the queued work and commit.

        With an empty queue this is a plain commit of the driver transaction
        and returns None. Otherwise the queue is flattened and sent as one
        batch, the transaction is committed, and the batch results are
        returned (None if a failure listener suppressed an error).
        """
        if not self._queue:
            await self.driver_transaction.commit()
            return None

        await self._ensure_started()
        statements = flatten(self._queue)
        self._queue = []
        return await self.event_dispatcher.run_dispatched(
            statements,
            lambda: self._run_and_commit(statements),
            self.connection_alias,
        )

    success = commit

    async def _run_and_commit(self, statements: List[Statement]) -> ResultCollection:
        results = await self.driver_transaction.run_multiple(statements)
        await self.driver_transaction.commit()
        return results

    async def rollback(self) -> None:
        await self.driver_transaction.rollback()

    # Status
    def status(self) -> str:
        return self.driver_transaction.status()

    def is_open(self) -> bool:
        return self.driver_transaction.is_open()

    def is_committed(self) -> bool:
        return self.driver_transaction.is_committed()

    def is_rolled_back(self) -> bool:
        return self.driver_transaction.is_rolled_back()

    @property
    def succeeded(self) -> Optional[bool]:
        """True once committed, False once rolled back, None while undecided."""
        if self.is_committed():
            return True
        if self.is_rolled_back():
            return False
        return None

    @property
    def failed(self) -> Optional[bool]:
        succeeded = self.succeeded
        return None if succeeded is None else not succeeded

    def __repr__(self) -> str:
        return f"Transaction(alias={self.connection_alias!r}, status={self.status()}, pending={len(self._queue)})"

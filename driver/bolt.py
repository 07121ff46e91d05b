from __future__ import annotations
from contextlib import asynccontextmanager, contextmanager
from itertools import count
from typing import Any, AsyncIterator, Dict, Iterator, List, Mapping, Optional, Tuple
from logging import Logger, getLogger as logging_getLogger

from neo4j import AsyncGraphDatabase, AsyncDriver, AsyncSession, AsyncTransaction
from neo4j.exceptions import DriverError, Neo4jError

from ..exceptions import FailureEffect, IllegalStateError, TransportFailure
from ..result import RecordCursor, ResultCollection
from ..statement import Statement
from .base import Driver, Pipeline, Session
from .config import BoltConfiguration, DEFAULT_TIMEOUT

DEFAULT_BOLT_PORT = 7687


@contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise neo4j driver errors as :class:`TransportFailure`."""
    try:
        yield
    except Neo4jError as e:
        raise TransportFailure(e.message or str(e), status_code=e.code) from e
    except DriverError as e:
        raise TransportFailure(str(e) or type(e).__name__, effect=FailureEffect.NONE) from e


async def _consume(runner: Any, statement: Statement) -> RecordCursor:
    result = await runner.run(statement.text, statement.parameters)
    eager = await result.to_eager_result()
    counters = getattr(eager.summary, "counters", None)
    stats = {k: v for k, v in vars(counters).items() if not k.startswith("_")} if counters is not None else {}
    return RecordCursor(
        statement,
        keys=eager.keys,
        records=[record.data() for record in eager.records],
        stats=stats,
    )


class BoltSession(Session):
    """
    Session over the Bolt protocol.

    Each auto-commit run and each pipeline uses a short-lived neo4j session
    from the driver's pool; explicit transactions keep their own neo4j
    session until they are committed or rolled back.
    """

    def __init__(self, client: AsyncDriver, database: Optional[str] = None,
                 logger: Optional[Logger] = None) -> None:
        self.client = client
        self.database = database
        self.current_transaction = None
        self.logger = logger or logging_getLogger(__name__)
        self._ids = count(1)
        self._transactions: Dict[int, Tuple[AsyncSession, AsyncTransaction]] = {}

    def _open(self) -> AsyncSession:
        return self.client.session(database=self.database)

    async def run(self, text: str, parameters: Optional[Mapping[str, Any]] = None,
                  tag: Optional[str] = None) -> RecordCursor:
        statement = Statement.create(text, parameters, tag)
        with translate_errors():
            async with self._open() as session:
                return await _consume(session, statement)

    async def flush(self, pipeline: Pipeline) -> ResultCollection:
        statements = pipeline.statements()
        results = ResultCollection(tag=pipeline.tag)
        with translate_errors():
            async with self._open() as session:
                tx = await session.begin_transaction()
                try:
                    for statement in statements:
                        results.add(await _consume(tx, statement))
                    await tx.commit()
                finally:
                    await tx.close()
        return results

    async def begin(self) -> int:
        session = self._open()
        try:
            with translate_errors():
                tx = await session.begin_transaction()
        except TransportFailure:
            await session.close()
            raise
        transaction_id = next(self._ids)
        self._transactions[transaction_id] = (session, tx)
        return transaction_id

    def _lookup(self, transaction_id: int) -> Tuple[AsyncSession, AsyncTransaction]:
        entry = self._transactions.get(transaction_id)
        if entry is None:
            raise IllegalStateError(f"No open transaction with id {transaction_id}")
        return entry

    @asynccontextmanager
    async def _inside(self, transaction_id: int) -> AsyncIterator[None]:
        """
        Translate errors raised while working inside an explicit transaction.

        A neo4j transaction cannot be used again once any call in it failed,
        so every failure releases it and is reported with a rollback effect.
        """
        try:
            with translate_errors():
                yield
        except TransportFailure as e:
            await self._release(transaction_id)
            if e.effect is FailureEffect.ROLLBACK:
                raise
            raise TransportFailure(e.message, status_code=e.status_code, effect=FailureEffect.ROLLBACK) from e

    async def push_to_transaction(self, transaction_id: int, statements: List[Statement]) -> ResultCollection:
        _, tx = self._lookup(transaction_id)
        results = ResultCollection()
        async with self._inside(transaction_id):
            for statement in statements:
                results.add(await _consume(tx, statement))
        return results

    async def commit_transaction(self, transaction_id: int) -> None:
        _, tx = self._lookup(transaction_id)
        async with self._inside(transaction_id):
            await tx.commit()
        await self._release(transaction_id)

    async def rollback_transaction(self, transaction_id: int) -> None:
        _, tx = self._lookup(transaction_id)
        try:
            with translate_errors():
                await tx.rollback()
        finally:
            await self._release(transaction_id)

    async def _release(self, transaction_id: int) -> None:
        session, tx = self._transactions.pop(transaction_id)
        try:
            with translate_errors():
                await tx.close()
                await session.close()
        except TransportFailure as e:
            self.logger.debug(f"Failed to release transaction {transaction_id}: {e}")

    async def close(self) -> None:
        for transaction_id in list(self._transactions):
            await self._release(transaction_id)


class BoltDriver(Driver):
    """Bolt driver built from a bare ``scheme://host:port`` address."""

    def __init__(self, uri: str, config: Optional[BoltConfiguration] = None,
                 client: Optional[AsyncDriver] = None, logger: Optional[Logger] = None) -> None:
        self.uri = uri
        self.config = config or BoltConfiguration(timeout=DEFAULT_TIMEOUT)
        self.logger = logger or logging_getLogger(__name__)
        if client is None:
            options: Dict[str, Any] = {"auth": self.config.auth}
            if self.config.timeout is not None:
                options["connection_timeout"] = self.config.timeout
            if self.config.encrypted is not None:
                options["encrypted"] = self.config.encrypted
            client = AsyncGraphDatabase.driver(uri, **options)
        self.client = client

    def session(self) -> BoltSession:
        return BoltSession(self.client, self.config.database, self.logger)

    async def close(self) -> None:
        await self.client.close()

    def __repr__(self) -> str:
        return f"BoltDriver(uri={self.uri!r}, timeout={self.config.timeout!r})"

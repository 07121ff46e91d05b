from __future__ import annotations
from enum import Enum
from typing import Any, List, Optional, TYPE_CHECKING
from logging import Logger, getLogger as logging_getLogger

from ..exceptions import FailureEffect, IllegalStateError, TransportFailure
from ..result import RecordCursor, ResultCollection
from ..statement import Statement

if TYPE_CHECKING:
    from .base import Session


class TransactionState(str, Enum):
    UNSTARTED = "UNSTARTED"
    OPEN = "OPEN"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


class DriverTransaction:
    """
    Per-session transaction state machine.

    UNSTARTED -> OPEN -> COMMITTED | ROLLED_BACK. Both terminal states close
    the transaction for good. Every check happens before the session is
    touched, and a failure whose effect is rollback moves the transaction to
    ROLLED_BACK before the error reaches the caller.
    """

    def __init__(self, session: Session, logger: Optional[Logger] = None) -> None:
        self.session = session
        self.logger = logger or logging_getLogger(__name__)
        self._state = TransactionState.UNSTARTED
        self._closed = False
        self._transaction_id: Any = None

    # State
    def status(self) -> str:
        return self._state.value

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def transaction_id(self) -> Any:
        return self._transaction_id

    def is_open(self) -> bool:
        return self._state is TransactionState.OPEN

    def is_committed(self) -> bool:
        return self._state is TransactionState.COMMITTED

    def is_rolled_back(self) -> bool:
        return self._state is TransactionState.ROLLED_BACK

    def is_closed(self) -> bool:
        return self._closed

    # Transitions
    async def begin(self) -> None:
        if self._state is not TransactionState.UNSTARTED:
            raise IllegalStateError(f"Cannot begin transaction, state is {self._state.value}")
        self._transaction_id = await self.session.begin()
        self._state = TransactionState.OPEN
        self.session.current_transaction = self
        self.logger.debug(f"BEGIN transaction {self._transaction_id}")

    async def run(self, statement: Statement) -> RecordCursor:
        results = await self.run_multiple([statement])
        return results[0]

    async def run_multiple(self, statements: List[Statement]) -> ResultCollection:
        self._assert_not_closed()
        self._assert_started()
        try:
            return await self.session.push_to_transaction(self._transaction_id, list(statements))
        except TransportFailure as e:
            self._on_failure(e)
            raise

    async def commit(self) -> None:
        self._assert_not_closed()
        self._assert_started()
        try:
            await self.session.commit_transaction(self._transaction_id)
        except TransportFailure as e:
            self._on_failure(e)
            raise
        self._close(TransactionState.COMMITTED)
        self.logger.debug(f"COMMIT transaction {self._transaction_id}")

    success = commit

    async def rollback(self) -> None:
        self._assert_not_closed()
        self._assert_started()
        try:
            await self.session.rollback_transaction(self._transaction_id)
        finally:
            self._close(TransactionState.ROLLED_BACK)
            self.logger.debug(f"ROLLBACK transaction {self._transaction_id}")

    # Helpers
    def _on_failure(self, error: TransportFailure) -> None:
        if error.effect is FailureEffect.ROLLBACK:
            self.logger.warning(f"Transaction {self._transaction_id} rolled back by server: {error.status_code}")
            self._close(TransactionState.ROLLED_BACK)

    def _close(self, state: TransactionState) -> None:
        self._state = state
        self._closed = True
        if self.session.current_transaction is self:
            self.session.current_transaction = None

    def _assert_started(self) -> None:
        if self._state is not TransactionState.OPEN:
            raise IllegalStateError("This transaction has not been started")

    def _assert_not_closed(self) -> None:
        if self._closed:
            raise IllegalStateError("This transaction is closed")

    def __repr__(self) -> str:
        return f"DriverTransaction(id={self._transaction_id!r}, state={self._state.value})"

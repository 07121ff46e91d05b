from __future__ import annotations
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from logging import Logger, getLogger as logging_getLogger

from .exceptions import TransportFailure
from .result import ResultCollection
from .statement import Statement


class EventKind(str, Enum):
    PRE_RUN = "neo4j.pre_run"
    POST_RUN = "neo4j.post_run"
    ON_FAILURE = "neo4j.on_failure"


class FailureDecision(str, Enum):
    """What a failure listener wants done with the exception."""
    PROPAGATE = "propagate"
    SUPPRESS = "suppress"


@dataclass(frozen=True)
class PreRunEvent:
    kind: ClassVar[EventKind] = EventKind.PRE_RUN
    statements: Tuple[Statement, ...]
    connection_alias: Optional[str] = None


@dataclass(frozen=True)
class PostRunEvent:
    kind: ClassVar[EventKind] = EventKind.POST_RUN
    results: ResultCollection
    connection_alias: Optional[str] = None


@dataclass(frozen=True)
class FailureEvent:
    kind: ClassVar[EventKind] = EventKind.ON_FAILURE
    exception: TransportFailure
    statements: Tuple[Statement, ...] = ()
    connection_alias: Optional[str] = None


Event = Union[PreRunEvent, PostRunEvent, FailureEvent]
Listener = Callable[[Any], Union[Any, Awaitable[Any]]]


def event_kind(kind: Union[EventKind, str]) -> EventKind:
    try:
        return EventKind(kind)
    except ValueError as e:
        raise ValueError(f"Unknown event {kind!r}") from e


class EventDispatcher:
    """
    Listener table keyed by event kind.

    Listeners are plain callables or coroutine functions taking the event.
    They run in registration order. Registration replaces the per-kind tuple
    instead of mutating it, so a dispatch in progress keeps the listeners it
    started with. Failure listeners return a :class:`FailureDecision` or None.
    """

    def __init__(self, listeners: Optional[Mapping[Union[EventKind, str], Iterable[Listener]]] = None,
                 logger: Optional[Logger] = None) -> None:
        self.logger = logger or logging_getLogger(__name__)
        self._listeners: Dict[EventKind, Tuple[Listener, ...]] = {kind: () for kind in EventKind}
        for kind, callbacks in (listeners or {}).items():
            for callback in callbacks:
                self.add_listener(kind, callback)

    def add_listener(self, kind: Union[EventKind, str], listener: Listener) -> None:
        if not callable(listener):
            raise TypeError(f"Listener for {kind!r} must be callable")
        kind = event_kind(kind)
        self._listeners[kind] = self._listeners[kind] + (listener,)

    def remove_listener(self, kind: Union[EventKind, str], listener: Listener) -> None:
        kind = event_kind(kind)
        self._listeners[kind] = tuple(l for l in self._listeners[kind] if l is not listener)

    def listeners(self, kind: Union[EventKind, str]) -> Tuple[Listener, ...]:
        return self._listeners[event_kind(kind)]

    def has_listeners(self, kind: Union[EventKind, str]) -> bool:
        return bool(self.listeners(kind))

    async def dispatch(self, event: Event) -> List[Any]:
        """Call every listener of the event's kind and return their answers."""
        answers = []
        for listener in self._listeners[event.kind]:
            answer = listener(event)
            if inspect.isawaitable(answer):
                answer = await answer
            answers.append(answer)
        return answers

    async def dispatch_failure(self, event: FailureEvent) -> FailureDecision:
        answers = await self.dispatch(event)
        if any(answer == FailureDecision.SUPPRESS for answer in answers):
            self.logger.info(f"Failure suppressed by listener: {event.exception.message}")
            return FailureDecision.SUPPRESS
        return FailureDecision.PROPAGATE

    async def run_dispatched(
        self,
        statements: Iterable[Statement],
        send: Callable[[], Awaitable[ResultCollection]],
        connection_alias: Optional[str] = None,
    ) -> Optional[ResultCollection]:
        """
        Fire PreRun, await ``send`` and fire PostRun, or Failure when it raises.

        Returns None when a failure listener suppressed the exception.
        """
        statements = tuple(statements)
        await self.dispatch(PreRunEvent(statements, connection_alias))
        try:
            results = await send()
        except TransportFailure as e:
            decision = await self.dispatch_failure(FailureEvent(e, statements, connection_alias))
            if decision is FailureDecision.SUPPRESS:
                return None
            raise
        await self.dispatch(PostRunEvent(results, connection_alias))
        return results

# tests/test_events.py
import pytest
from ..events import (
    EventDispatcher, EventKind, FailureDecision, FailureEvent, PostRunEvent, PreRunEvent, event_kind,
)
from ..result import ResultCollection
from ..statement import Statement
from .fakes import rollback_failure


class Recorder:
    def __init__(self, answer=None):
        self.events = []
        self.answer = answer

    def __call__(self, event):
        self.events.append(event)
        return self.answer


class TestEventKinds:
    """Tests for event names."""

    def test_names(self):
        assert event_kind("neo4j.pre_run") is EventKind.PRE_RUN
        assert PreRunEvent.kind is EventKind.PRE_RUN
        assert PostRunEvent.kind is EventKind.POST_RUN
        assert FailureEvent.kind is EventKind.ON_FAILURE

    def test_unknown(self):
        with pytest.raises(ValueError):
            event_kind("neo4j.before_everything")


class TestEventDispatcher:
    """Tests for registering listeners and dispatching events."""

    def test_add_and_remove(self):
        dispatcher = EventDispatcher()
        listener = Recorder()
        dispatcher.add_listener("neo4j.post_run", listener)
        assert dispatcher.listeners(EventKind.POST_RUN) == (listener,)
        assert dispatcher.has_listeners("neo4j.post_run")
        assert not dispatcher.has_listeners("neo4j.pre_run")

        dispatcher.remove_listener(EventKind.POST_RUN, listener)
        assert not dispatcher.has_listeners(EventKind.POST_RUN)

    def test_not_callable(self):
        with pytest.raises(TypeError):
            EventDispatcher().add_listener(EventKind.PRE_RUN, "not a function")

    def test_listeners_from_constructor(self):
        listener = Recorder()
        dispatcher = EventDispatcher({"neo4j.pre_run": [listener]})
        assert dispatcher.listeners(EventKind.PRE_RUN) == (listener,)

    @pytest.mark.asyncio
    async def test_dispatch_order_and_async_listeners(self):
        dispatcher = EventDispatcher()
        order = []

        def first(event):
            order.append("first")

        async def second(event):
            order.append("second")
            return "answer"

        dispatcher.add_listener(EventKind.PRE_RUN, first)
        dispatcher.add_listener(EventKind.PRE_RUN, second)
        answers = await dispatcher.dispatch(PreRunEvent((Statement("RETURN 1"),)))
        assert order == ["first", "second"]
        assert answers == [None, "answer"]

    @pytest.mark.asyncio
    async def test_registration_during_dispatch(self):
        dispatcher = EventDispatcher()
        late = Recorder()

        def register_late(event):
            dispatcher.add_listener(EventKind.PRE_RUN, late)

        dispatcher.add_listener(EventKind.PRE_RUN, register_late)
        await dispatcher.dispatch(PreRunEvent(()))
        assert late.events == []
        await dispatcher.dispatch(PreRunEvent(()))
        assert len(late.events) == 1


class TestRunDispatched:
    """Tests for wrapping a send with PreRun, PostRun and Failure."""

    @pytest.mark.asyncio
    async def test_success(self):
        dispatcher = EventDispatcher()
        pre, post, failure = Recorder(), Recorder(), Recorder()
        dispatcher.add_listener(EventKind.PRE_RUN, pre)
        dispatcher.add_listener(EventKind.POST_RUN, post)
        dispatcher.add_listener(EventKind.ON_FAILURE, failure)
        statements = [Statement("RETURN 1")]
        expected = ResultCollection()

        async def send():
            assert len(pre.events) == 1
            return expected

        results = await dispatcher.run_dispatched(statements, send, "a")
        assert results is expected
        assert pre.events == [PreRunEvent(tuple(statements), "a")]
        assert post.events[0].results is expected
        assert post.events[0].connection_alias == "a"
        assert failure.events == []

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        dispatcher = EventDispatcher()
        post, failure = Recorder(), Recorder()
        dispatcher.add_listener(EventKind.POST_RUN, post)
        dispatcher.add_listener(EventKind.ON_FAILURE, failure)
        error = rollback_failure()

        async def send():
            raise error

        with pytest.raises(type(error)):
            await dispatcher.run_dispatched([Statement("RETRUN 1")], send)
        assert failure.events[0].exception is error
        assert failure.events[0].statements[0].text == "RETRUN 1"
        assert post.events == []

    @pytest.mark.asyncio
    async def test_failure_suppressed(self):
        dispatcher = EventDispatcher()
        dispatcher.add_listener(EventKind.ON_FAILURE, Recorder())
        dispatcher.add_listener(EventKind.ON_FAILURE, Recorder(FailureDecision.SUPPRESS))

        async def send():
            raise rollback_failure()

        assert await dispatcher.run_dispatched([Statement("RETRUN 1")], send) is None

    @pytest.mark.asyncio
    async def test_other_exceptions_are_not_dispatched(self):
        dispatcher = EventDispatcher()
        failure = Recorder(FailureDecision.SUPPRESS)
        dispatcher.add_listener(EventKind.ON_FAILURE, failure)

        async def send():
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await dispatcher.run_dispatched([], send)
        assert failure.events == []

# tests/driver/test_bolt.py
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from neo4j import AsyncGraphDatabase
from neo4j.exceptions import ServiceUnavailable
from ...driver.bolt import BoltDriver, BoltSession, translate_errors
from ...driver.config import BoltConfiguration
from ...exceptions import FailureEffect, IllegalStateError, TransportFailure
from ...statement import Statement
from ..fakes import transient_failure


class FakeRecord:
    def __init__(self, **values):
        self.values = values

    def data(self):
        return dict(self.values)


def eager_result(text):
    return SimpleNamespace(
        keys=["query"],
        records=[FakeRecord(query=text)],
        summary=SimpleNamespace(counters=SimpleNamespace(nodes_created=1)),
    )


def make_runner():
    """A mock with an async ``run`` returning an eager-capable result."""
    runner = MagicMock()

    def run(text, parameters):
        result = MagicMock()
        result.to_eager_result = AsyncMock(return_value=eager_result(text))
        return result

    runner.run = AsyncMock(side_effect=run)
    runner.commit = AsyncMock()
    runner.rollback = AsyncMock()
    runner.close = AsyncMock()
    return runner


def make_client():
    tx = make_runner()
    neo_session = make_runner()
    neo_session.__aenter__.return_value = neo_session
    neo_session.begin_transaction = AsyncMock(return_value=tx)
    client = MagicMock()
    client.session.return_value = neo_session
    client.close = AsyncMock()
    return client, neo_session, tx


class TestTranslateErrors:
    """Tests for mapping neo4j exceptions."""

    def test_driver_error(self):
        with pytest.raises(TransportFailure) as exc_info:
            with translate_errors():
                raise ServiceUnavailable("Unable to connect")
        assert exc_info.value.effect is FailureEffect.NONE
        assert isinstance(exc_info.value.__cause__, ServiceUnavailable)

    def test_other_errors_pass_through(self):
        with pytest.raises(KeyError):
            with translate_errors():
                raise KeyError("x")


class TestBoltSession:
    """Tests for BoltSession against a mocked neo4j driver."""

    @pytest.mark.asyncio
    async def test_run(self):
        client, neo_session, _ = make_client()
        session = BoltSession(client, database="movies")
        cursor = await session.run("MATCH (n) RETURN n", {"x": 1}, "read")

        client.session.assert_called_once_with(database="movies")
        neo_session.run.assert_awaited_once_with("MATCH (n) RETURN n", {"x": 1})
        assert cursor.first_record() == {"query": "MATCH (n) RETURN n"}
        assert cursor.stats == {"nodes_created": 1}
        assert cursor.statement.tag == "read"

    @pytest.mark.asyncio
    async def test_flush_in_order_and_commits(self):
        client, _, tx = make_client()
        session = BoltSession(client)
        pipeline = session.create_pipeline(tag="batch")
        pipeline.push("A")
        pipeline.push("B")
        results = await pipeline.run()

        assert [call.args[0] for call in tx.run.await_args_list] == ["A", "B"]
        tx.commit.assert_awaited_once()
        tx.close.assert_awaited_once()
        assert results.tag == "batch"
        assert [c.statement.text for c in results] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_explicit_transaction(self):
        client, neo_session, tx = make_client()
        session = BoltSession(client)
        transaction = session.transaction()
        await transaction.begin()
        assert transaction.transaction_id == 1

        results = await transaction.run_multiple([Statement("A"), Statement("B")])
        assert len(results) == 2
        await transaction.commit()

        tx.commit.assert_awaited_once()
        tx.close.assert_awaited_once()
        neo_session.close.assert_awaited_once()
        assert transaction.is_committed()

    @pytest.mark.asyncio
    async def test_rollback_releases_session(self):
        client, neo_session, tx = make_client()
        session = BoltSession(client)
        transaction_id = await session.begin()
        await session.rollback_transaction(transaction_id)

        tx.rollback.assert_awaited_once()
        neo_session.close.assert_awaited_once()
        with pytest.raises(IllegalStateError):
            await session.commit_transaction(transaction_id)

    @pytest.mark.asyncio
    async def test_transient_failure_mid_transaction(self):
        """Any failure inside a transaction releases it and closes the state machine."""
        client, neo_session, tx = make_client()
        tx.run = AsyncMock(side_effect=transient_failure())
        transaction = BoltSession(client).transaction()
        await transaction.begin()

        with pytest.raises(TransportFailure) as exc_info:
            await transaction.run(Statement("MATCH (n) SET n.x = 1"))

        assert exc_info.value.effect is FailureEffect.ROLLBACK
        assert exc_info.value.status_code == "Neo.TransientError.Transaction.DeadlockDetected"
        assert transaction.is_rolled_back()
        assert transaction.is_closed()
        tx.close.assert_awaited_once()
        neo_session.close.assert_awaited_once()
        with pytest.raises(IllegalStateError):
            await transaction.run(Statement("MATCH (n) SET n.x = 1"))
        tx.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unavailable_server_mid_commit(self):
        client, neo_session, tx = make_client()
        tx.commit = AsyncMock(side_effect=ServiceUnavailable("Connection lost"))
        transaction = BoltSession(client).transaction()
        await transaction.begin()

        with pytest.raises(TransportFailure) as exc_info:
            await transaction.commit()

        assert exc_info.value.effect is FailureEffect.ROLLBACK
        assert isinstance(exc_info.value.__cause__, TransportFailure)
        assert transaction.is_rolled_back()
        neo_session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unavailable_server(self):
        client, neo_session, _ = make_client()
        neo_session.run = AsyncMock(side_effect=ServiceUnavailable("Unable to retrieve routing information"))
        session = BoltSession(client)
        with pytest.raises(TransportFailure) as exc_info:
            await session.run("RETURN 1")
        assert exc_info.value.effect is FailureEffect.NONE

    @pytest.mark.asyncio
    async def test_failed_begin_closes_session(self):
        client, neo_session, _ = make_client()
        neo_session.begin_transaction = AsyncMock(side_effect=ServiceUnavailable("down"))
        session = BoltSession(client)
        with pytest.raises(TransportFailure):
            await session.begin()
        neo_session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_releases_open_transactions(self):
        client, neo_session, tx = make_client()
        session = BoltSession(client)
        await session.begin()
        await session.close()
        tx.close.assert_awaited_once()
        neo_session.close.assert_awaited_once()


class TestBoltDriver:
    """Tests for building the neo4j driver."""

    def test_driver_options(self):
        config = BoltConfiguration(user="neo4j", password="secret", encrypted=True, timeout=3)
        with patch.object(AsyncGraphDatabase, "driver") as factory:
            driver = BoltDriver("bolt://localhost:7687", config)
        factory.assert_called_once_with(
            "bolt://localhost:7687", auth=("neo4j", "secret"), connection_timeout=3, encrypted=True
        )
        assert driver.client is factory.return_value
        assert driver.timeout == 3

    def test_driver_without_credentials(self):
        with patch.object(AsyncGraphDatabase, "driver") as factory:
            BoltDriver("neo4j://localhost:7687")
        factory.assert_called_once_with("neo4j://localhost:7687", auth=None, connection_timeout=5)

    @pytest.mark.asyncio
    async def test_injected_client(self):
        client, _, _ = make_client()
        driver = BoltDriver("bolt://localhost:7687", client=client)
        assert isinstance(driver.session(), BoltSession)
        await driver.close()
        client.close.assert_awaited_once()

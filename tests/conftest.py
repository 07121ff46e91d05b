# tests/conftest.py
import pytest
from .fakes import FakeDriver
from ..connection.manager import ConnectionManager
from ..events import EventDispatcher
from ..client import Client

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def manager():
    """A manager with a Bolt alias "a" and an HTTP alias "b", both on fake drivers."""
    manager = ConnectionManager()
    manager.register_connection("a", "bolt://localhost:7687", driver=FakeDriver())
    manager.register_connection("b", "http://localhost:7474", driver=FakeDriver())
    return manager


@pytest.fixture
def client(manager):
    return Client(manager, EventDispatcher())

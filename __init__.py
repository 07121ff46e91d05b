from .client import Client
from .builder import ClientBuilder, ClientConfig, ConnectionSettings, HistorySettings, build_client
from .connection import Connection, ConnectionManager, parse_uri
from .driver import (
    BoltConfiguration,
    HttpConfiguration,
    DriverTransaction,
    TransactionState,
    Pipeline,
)
from .events import (
    EventDispatcher,
    EventKind,
    FailureDecision,
    PreRunEvent,
    PostRunEvent,
    FailureEvent,
)
from .exceptions import (
    GraphClientError,
    ConfigurationError,
    IllegalStateError,
    TransportFailure,
    FailureEffect,
)
from .history import QueryHistory
from .result import RecordCursor, ResultCollection
from .stack import Stack
from .statement import Statement
from .transaction import Transaction

AsyncGraphClient = Client

__all__ = (
    "Client",
    "AsyncGraphClient",
    "ClientBuilder",
    "ClientConfig",
    "ConnectionSettings",
    "HistorySettings",
    "build_client",
    "Connection",
    "ConnectionManager",
    "parse_uri",
    "BoltConfiguration",
    "HttpConfiguration",
    "DriverTransaction",
    "TransactionState",
    "Pipeline",
    "EventDispatcher",
    "EventKind",
    "FailureDecision",
    "PreRunEvent",
    "PostRunEvent",
    "FailureEvent",
    "GraphClientError",
    "ConfigurationError",
    "IllegalStateError",
    "TransportFailure",
    "FailureEffect",
    "QueryHistory",
    "RecordCursor",
    "ResultCollection",
    "Stack",
    "Statement",
    "Transaction",
)

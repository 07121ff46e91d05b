"""
Transport drivers.

Both drivers produce a :class:`Session` exposing the same capability set, so
everything above this package stays unaware of whether an alias talks Bolt
or HTTP.
"""

from .base import Driver, Session, Pipeline
from .transaction import DriverTransaction, TransactionState
from .config import BoltConfiguration, HttpConfiguration, DEFAULT_TIMEOUT
from .bolt import BoltDriver, BoltSession, DEFAULT_BOLT_PORT
from .http import HttpDriver, HttpSession, DEFAULT_HTTP_PORT

__all__ = [
    "Driver",
    "Session",
    "Pipeline",
    "DriverTransaction",
    "TransactionState",
    "BoltConfiguration",
    "HttpConfiguration",
    "DEFAULT_TIMEOUT",
    "BoltDriver",
    "BoltSession",
    "DEFAULT_BOLT_PORT",
    "HttpDriver",
    "HttpSession",
    "DEFAULT_HTTP_PORT",
]

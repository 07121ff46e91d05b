from .connection import Connection
from .manager import ConnectionManager
from .uri import ParsedUri, TransportKind, parse_uri

__all__ = [
    "Connection",
    "ConnectionManager",
    "ParsedUri",
    "TransportKind",
    "parse_uri",
]

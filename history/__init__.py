from .history import QueryHistory, default_history_format_function
from .writers import JSONLinesWriter, TXTWriter, writer_for

__all__ = (
    "QueryHistory",
    "default_history_format_function",
    "JSONLinesWriter",
    "TXTWriter",
    "writer_for",
)

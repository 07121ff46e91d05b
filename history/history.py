from __future__ import annotations
import asyncio
from typing import Callable, List, Optional
from logging import Logger, getLogger as logging_getLogger

from ..events import EventDispatcher, EventKind, FailureEvent, PostRunEvent
from ..log import ExecutionLog
from .writers import HistoryWriter, normalize_path, writer_for


def default_history_format_function(item: dict) -> str:
    """
    Default function to format history entries for text dumps.
    """
    header = f"[{item['timestamp']}]({item['alias']})"
    if item.get("tag"):
        header += f" #{item['tag']}"
    outcome = f"Error: {item['error']}" if item.get("error") else f"Records: {item['records']}"
    return (
        f"{header}\n"
        f"{item['query']}\n"
        f"Parameters: {item['parameters']}\n"
        f"{outcome}\n"
    )


class QueryHistory:
    """
    Keeps the most recent executed statements and dumps them to a file.

    Entries accumulate up to ``history_length``; when the buffer is full it
    is flushed to ``path`` (or, without a path, the oldest entries are
    dropped). ``history_length=None`` disables recording.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        history_length: Optional[int] = 10,
        history_format_function: Callable[[dict], str] = default_history_format_function,
        logger: Optional[Logger] = None,
    ) -> None:
        self.path = normalize_path(path) if path else None
        self.history_format_function = history_format_function
        self.logger = logger or logging_getLogger(__name__)
        self._history_length = self._validate_none_or_non_neg_int(history_length)
        self._entries: List[ExecutionLog] = []
        self._writer: Optional[HistoryWriter] = writer_for(self.path, history_format_function) if self.path else None
        self._lock = asyncio.Lock()

    @staticmethod
    def _validate_none_or_non_neg_int(value: Optional[int]) -> Optional[int]:
        """Validate non-negative integer or None."""
        if value is not None and (not isinstance(value, int) or value < 0):
            raise ValueError("Value must be a non-negative integer or None")
        return value

    @property
    def history_length(self) -> Optional[int]:
        return self._history_length

    @history_length.setter
    def history_length(self, value: Optional[int]) -> None:
        self._history_length = self._validate_none_or_non_neg_int(value)

    @property
    def entries(self) -> List[ExecutionLog]:
        return list(self._entries)

    @property
    def enabled(self) -> bool:
        return bool(self._history_length)

    async def append(self, item: ExecutionLog) -> None:
        """Append an item, flushing or trimming once the buffer is full."""
        if not self.enabled:
            return
        async with self._lock:
            self._entries.append(item)
            if len(self._entries) < self._history_length:
                return
            if self._writer is not None:
                await self._flush_locked()
            else:
                del self._entries[:-self._history_length]

    async def flush_to_file(self) -> None:
        async with self._lock:
            await self._flush_locked()

    async def _flush_locked(self) -> None:
        if self._writer is None or not self._entries:
            return
        items = [entry.to_dict() for entry in self._entries]
        self._entries = []
        await self._writer.write_batch(self.path, items)
        self.logger.debug(f"Flushed {len(items)} history entries to {self.path}")

    # Event listeners
    async def on_post_run(self, event: PostRunEvent) -> None:
        for cursor in event.results:
            statement = cursor.statement
            await self.append(ExecutionLog(
                event.connection_alias, statement.text, statement.parameters, statement.tag, records=cursor.size()
            ))

    async def on_failure(self, event: FailureEvent) -> None:
        for statement in event.statements:
            await self.append(ExecutionLog(
                event.connection_alias, statement.text, statement.parameters, statement.tag,
                error=event.exception.status_code or event.exception.message,
            ))

    def install(self, dispatcher: EventDispatcher) -> None:
        dispatcher.add_listener(EventKind.POST_RUN, self.on_post_run)
        dispatcher.add_listener(EventKind.ON_FAILURE, self.on_failure)

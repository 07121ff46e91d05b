# history/writers.py
from __future__ import annotations

import os
import json
import aiofiles
from typing import Callable, List, Protocol


class HistoryWriter(Protocol):
    async def write_batch(self, path: str, items: List[dict]) -> None:
        ...


class TXTWriter:
    """Appends formatted entries to a plain text file."""

    def __init__(self, format_function: Callable[[dict], str]) -> None:
        self.format_function = format_function

    async def write_batch(self, path: str, items: List[dict]) -> None:
        async with aiofiles.open(path, "a", encoding="utf-8") as f:
            for item in items:
                await f.write(self.format_function(item))


class JSONLinesWriter:
    """Appends one JSON object per line."""

    async def write_batch(self, path: str, items: List[dict]) -> None:
        async with aiofiles.open(path, "a", encoding="utf-8") as f:
            for item in items:
                await f.write(json.dumps(item) + "\n")


def normalize_path(path: str) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return os.path.abspath(path)


def writer_for(path: str, format_function: Callable[[dict], str]) -> HistoryWriter:
    """Pick a writer from the file extension; ``.json``/``.jsonl`` get JSON lines."""
    if path.endswith((".json", ".jsonl")):
        return JSONLinesWriter()
    return TXTWriter(format_function)

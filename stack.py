from __future__ import annotations
from typing import Any, List, Mapping, Optional
from .statement import Statement


class Stack:
    """
    A transport-agnostic, ordered batch of statements.

    Statements pushed with :meth:`push_write` flag the stack as writing so it
    is routed to the master connection when no alias is given. Preflights are
    kept apart from the main batch and are sent ahead of it by callers that
    honour them.

    Example:
        >>> stack = Stack.create("import")
        >>> stack.push("RETURN 1")
        >>> stack.push_write("CREATE (n) RETURN n")
        >>> stack.size(), stack.has_writes()
        (2, True)
    """

    def __init__(self, tag: Optional[str] = None, connection_alias: Optional[str] = None) -> None:
        self._tag = str(tag) if tag is not None else None
        self._connection_alias = connection_alias
        self._statements: List[Statement] = []
        self._preflights: List[Statement] = []
        self._has_writes = False

    @classmethod
    def create(cls, tag: Optional[str] = None, connection_alias: Optional[str] = None) -> Stack:
        return cls(tag, connection_alias)

    def push(self, query: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None) -> None:
        self._statements.append(Statement.create(query, parameters, tag))

    def push_write(self, query: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None) -> None:
        self._statements.append(Statement.create(query, parameters, tag))
        self._has_writes = True

    def add_preflight(self, query: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None) -> None:
        self._preflights.append(Statement.create(query, parameters, tag))

    def has_preflights(self) -> bool:
        return bool(self._preflights)

    def preflights(self) -> List[Statement]:
        return list(self._preflights)

    def size(self) -> int:
        return len(self._statements)

    def statements(self) -> List[Statement]:
        return list(self._statements)

    @property
    def tag(self) -> Optional[str]:
        return self._tag

    @property
    def connection_alias(self) -> Optional[str]:
        return self._connection_alias

    def has_writes(self) -> bool:
        return self._has_writes

    def __len__(self) -> int:
        return len(self._statements)

    def __repr__(self) -> str:
        return (f"Stack(tag={self._tag!r}, connection_alias={self._connection_alias!r}, "
                f"statements={len(self._statements)}, preflights={len(self._preflights)})")


def flatten(queue: List[Any]) -> List[Statement]:
    """Flatten Stacks and loose Statements into one sequence, keeping insertion order."""
    statements: List[Statement] = []
    for element in queue:
        if isinstance(element, Stack):
            statements.extend(element.statements())
        elif isinstance(element, Statement):
            statements.append(element)
        else:
            raise TypeError(f"Expected a Stack or Statement, got {type(element).__name__}")
    return statements

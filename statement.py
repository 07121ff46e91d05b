from __future__ import annotations
from typing import Any, Dict, Mapping, Optional


class Statement:
    """
    An immutable query text, its parameters and an optional tag.

    Parameters are copied on construction so later changes to the caller's
    mapping never leak into a queued statement. Empty text is rejected here,
    so no batch or transaction can carry one to an endpoint.
    """
    __slots__ = ("_text", "_parameters", "_tag")

    def __init__(self, text: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None):
        if not text or not isinstance(text, str):
            raise ValueError(f"Expected a non-empty Cypher statement, got {text!r}")
        object.__setattr__(self, "_text", text)
        object.__setattr__(self, "_parameters", dict(parameters or {}))
        object.__setattr__(self, "_tag", tag)

    @classmethod
    def create(cls, text: str, parameters: Optional[Mapping[str, Any]] = None, tag: Optional[str] = None) -> Statement:
        return cls(text, parameters, tag)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Statement is immutable")

    @property
    def text(self) -> str:
        return self._text

    @property
    def parameters(self) -> Dict[str, Any]:
        return dict(self._parameters)

    @property
    def tag(self) -> Optional[str]:
        return self._tag

    def with_parameters(self, parameters: Mapping[str, Any]) -> Statement:
        return Statement(self._text, parameters, self._tag)

    def __repr__(self):
        return f"Statement({self._text!r}, {self._parameters!r}, tag={self._tag!r})"

    def __eq__(self, other):
        if not isinstance(other, Statement):
            return False
        return (
            self._text == other._text and
            self._parameters == other._parameters and
            self._tag == other._tag
        )

    def __hash__(self):
        return hash((self._text, self._tag))

from __future__ import annotations
from enum import Enum
from typing import Optional


class FailureEffect(str, Enum):
    """Server-declared consequence of a failed round trip."""
    ROLLBACK = "ROLLBACK"
    NONE = "NONE"


# Classifications after which the server has discarded the open transaction.
ROLLBACK_CLASSIFICATIONS = frozenset({"ClientError", "DatabaseError"})


class GraphClientError(Exception):
    """Base exception for the graph client."""
    pass

class ConfigurationError(GraphClientError):
    """Raised for bad aliases, unknown URI schemes or master misconfiguration."""
    pass

class IllegalStateError(GraphClientError):
    """Raised when a transaction is driven through an illegal transition."""
    pass

class TransportFailure(GraphClientError):
    """
    Raised when an endpoint rejects a request or cannot be reached.

    Status codes follow the ``Neo.<Classification>.<Category>.<Title>`` shape.
    The effect is derived from the classification unless given explicitly.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[str] = None,
        effect: Optional[FailureEffect] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self._effect = effect

    def _part(self, index: int) -> Optional[str]:
        if not self.status_code:
            return None
        parts = self.status_code.split(".")
        return parts[index] if len(parts) > index else None

    @property
    def classification(self) -> Optional[str]:
        return self._part(1)

    @property
    def category(self) -> Optional[str]:
        return self._part(2)

    @property
    def title(self) -> Optional[str]:
        return self._part(3)

    @property
    def effect(self) -> FailureEffect:
        if self._effect is not None:
            return self._effect
        if self.classification in ROLLBACK_CLASSIFICATIONS:
            return FailureEffect.ROLLBACK
        return FailureEffect.NONE

    def __repr__(self) -> str:
        return f"TransportFailure({self.message!r}, status_code={self.status_code!r}, effect={self.effect.value})"

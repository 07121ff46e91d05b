from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

DEFAULT_TIMEOUT = 5
DEFAULT_DATABASE = "neo4j"


@dataclass(frozen=True)
class BoltConfiguration:
    """Settings handed to the Bolt driver when a connection is registered."""
    user: Optional[str] = None
    password: Optional[str] = None
    encrypted: Optional[bool] = None
    timeout: Optional[float] = None
    database: Optional[str] = None

    def with_credentials(self, user: str, password: str) -> BoltConfiguration:
        return replace(self, user=user, password=password)

    def with_encryption(self, encrypted: bool = True) -> BoltConfiguration:
        return replace(self, encrypted=encrypted)

    def with_timeout(self, timeout: float) -> BoltConfiguration:
        return replace(self, timeout=timeout)

    @property
    def auth(self) -> Optional[tuple]:
        if self.user is None:
            return None
        return (self.user, self.password or "")


@dataclass(frozen=True)
class HttpConfiguration:
    """
    Settings handed to the HTTP driver.

    ``transport`` accepts any ``httpx`` async transport, which is how the
    driver is pointed at a mock endpoint in tests.
    """
    user: Optional[str] = None
    password: Optional[str] = None
    timeout: Optional[float] = None
    database: str = DEFAULT_DATABASE
    headers: Dict[str, str] = field(default_factory=dict)
    transport: Any = None

    def with_credentials(self, user: str, password: str) -> HttpConfiguration:
        return replace(self, user=user, password=password)

    def with_timeout(self, timeout: float) -> HttpConfiguration:
        return replace(self, timeout=timeout)

    def with_database(self, database: str) -> HttpConfiguration:
        return replace(self, database=database)


def with_default_timeout(config: Any, timeout: float) -> Any:
    """Return ``config`` with ``timeout`` filled in when it was left unset."""
    if config.timeout is None:
        return replace(config, timeout=timeout)
    return config

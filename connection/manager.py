from __future__ import annotations
import asyncio
from typing import Dict, Iterator, List, Optional
from logging import Logger, getLogger as logging_getLogger

from ..driver.base import Driver
from ..driver.bolt import DEFAULT_BOLT_PORT
from ..driver.config import DEFAULT_TIMEOUT
from ..driver.http import DEFAULT_HTTP_PORT
from ..exceptions import ConfigurationError
from .connection import Connection, DriverConfig


class ConnectionManager:
    """
    Registry of named connections with one optional master.

    Connections are addressed by alias. The master alias receives write-routed
    work and is also what :meth:`get_connection` returns when no alias is
    given.

    Methods:
        register_connection(alias, uri, config) -> Connection:
            Builds and registers a connection; the driver is chosen from the URI.
        set_master(alias) -> None:
            Marks ``alias`` as the single master connection.
        get_connection(alias=None) -> Connection:
            Resolves an alias, or the default connection when ``alias`` is None.
        get_master_connection() -> Connection:
            Resolves the write target.
    """

    def __init__(
        self,
        logger: Optional[Logger] = None,
        *,
        default_timeout: float = DEFAULT_TIMEOUT,
        default_bolt_port: int = DEFAULT_BOLT_PORT,
        default_http_port: int = DEFAULT_HTTP_PORT,
    ) -> None:
        self._connections: Dict[str, Connection] = {}
        self._master: Optional[str] = None
        self.default_timeout = default_timeout
        self.default_bolt_port = default_bolt_port
        self.default_http_port = default_http_port
        self.logger = logger or logging_getLogger(__name__)
        self._locks: Dict[str, asyncio.Lock] = {}

    @staticmethod
    def _check_alias(alias: str) -> None:
        if not isinstance(alias, str) or not alias:
            raise ConfigurationError("Connection alias must be a non-empty string")

    def register_connection(
        self,
        alias: str,
        uri: str,
        config: Optional[DriverConfig] = None,
        *,
        driver: Optional[Driver] = None,
    ) -> Connection:
        """
        Register a connection under ``alias``.

        Raises:
            ConfigurationError: If the alias is taken or the URI has no usable scheme.
        """
        self._check_alias(alias)
        if alias in self._connections:
            raise ConfigurationError(f"Connection {alias!r} is already registered")
        connection = Connection(
            alias,
            uri,
            config,
            default_timeout=self.default_timeout,
            default_bolt_port=self.default_bolt_port,
            default_http_port=self.default_http_port,
            driver=driver,
            logger=self.logger,
        )
        self._connections[alias] = connection
        self.logger.debug(f"Registered connection {alias!r} ({connection.kind.value})")
        return connection

    def set_master(self, alias: str) -> None:
        if alias not in self._connections:
            raise ConfigurationError(f"The connection {alias!r} is not registered")
        self._master = alias
        self.logger.debug(f"Connection {alias!r} is now master")

    def get_connection(self, alias: Optional[str] = None) -> Connection:
        """
        Resolve ``alias`` to its connection.

        With no alias the master is returned; without a master the sole
        registered connection is used.

        Raises:
            ConfigurationError: If the alias is unknown, nothing is registered,
                or several connections exist and none is master.
        """
        if alias is not None:
            connection = self._connections.get(alias)
            if connection is None:
                raise ConfigurationError(f"The connection {alias!r} is not registered")
            return connection

        if self._master is not None:
            return self._connections[self._master]
        if not self._connections:
            raise ConfigurationError("No connection is registered")
        if len(self._connections) > 1:
            raise ConfigurationError(
                "Several connections are registered and none is master; pass an alias"
            )
        return next(iter(self._connections.values()))

    resolve = get_connection

    def get_master_connection(self) -> Connection:
        return self.get_connection(None)

    def get(self, alias: str, default: Optional[Connection] = None) -> Optional[Connection]:
        return self._connections.get(alias, default)

    def get_lock(self, alias: str) -> asyncio.Lock:
        return self._locks.setdefault(alias, asyncio.Lock())

    # Properties
    @property
    def master(self) -> Optional[str]:
        return self._master

    @property
    def aliases(self) -> List[str]:
        return list(self._connections)

    def is_master(self, alias: str) -> bool:
        return self._master is not None and self._master == alias

    def __contains__(self, alias: object) -> bool:
        return isinstance(alias, str) and alias in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    # Lifecycle
    async def close(self, alias: str) -> None:
        """Close a connection and forget it."""
        connection = self._connections.pop(alias, None)
        if connection is None:
            return
        if self._master == alias:
            self._master = None
        self._locks.pop(alias, None)
        await connection.close()
        self.logger.debug(f"Closed connection {alias!r}")

    async def close_all(self) -> None:
        for alias in self.aliases:
            await self.close(alias)

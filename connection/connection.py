from __future__ import annotations
import threading
from typing import Any, List, Mapping, Optional, Union
from logging import Logger, getLogger as logging_getLogger

from ..driver.base import Driver, Pipeline, Session
from ..driver.bolt import BoltDriver, DEFAULT_BOLT_PORT
from ..driver.config import BoltConfiguration, HttpConfiguration, DEFAULT_TIMEOUT, with_default_timeout
from ..driver.http import HttpDriver, DEFAULT_HTTP_PORT
from ..driver.transaction import DriverTransaction
from ..exceptions import ConfigurationError
from ..result import RecordCursor, ResultCollection
from ..stack import Stack, flatten
from ..statement import Statement
from .uri import ParsedUri, TransportKind, parse_uri

DriverConfig = Union[BoltConfiguration, HttpConfiguration]


class Connection:
    """
    A logical alias bound to one endpoint.

    The driver is chosen from the URI scheme when the connection is created,
    so an unusable URI fails at registration rather than on first use. The
    session is created on first use, exactly once.

    Attributes:
        alias (str): Name the connection is registered under.
        uri (str): The URI as given, credentials included.
        parsed (ParsedUri): The URI split into address, credentials and flags.
        driver (Driver): Bolt or HTTP driver for this endpoint.
    """

    def __init__(
        self,
        alias: str,
        uri: str,
        config: Optional[DriverConfig] = None,
        *,
        default_timeout: float = DEFAULT_TIMEOUT,
        default_bolt_port: int = DEFAULT_BOLT_PORT,
        default_http_port: int = DEFAULT_HTTP_PORT,
        driver: Optional[Driver] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        if not alias or not isinstance(alias, str):
            raise ConfigurationError("Connection alias must be a non-empty string")
        self.alias = alias
        self.uri = uri
        self.logger = logger or logging_getLogger(__name__)
        self.parsed: ParsedUri = parse_uri(uri, default_bolt_port, default_http_port)
        self.default_timeout = default_timeout
        self.default_http_port = default_http_port
        self.driver: Driver = driver if driver is not None else self._build_driver(config)
        self._session: Optional[Session] = None
        self._session_lock = threading.Lock()

    @property
    def kind(self) -> TransportKind:
        return self.parsed.kind

    @property
    def config(self) -> Any:
        return self.driver.config

    def _build_driver(self, config: Optional[DriverConfig]) -> Driver:
        if self.parsed.kind is TransportKind.BOLT:
            if config is not None and not isinstance(config, BoltConfiguration):
                raise ConfigurationError(f"Connection {self.alias!r} needs a BoltConfiguration")
            bolt_config = config or BoltConfiguration()
            if self.parsed.has_credentials:
                bolt_config = bolt_config.with_credentials(self.parsed.user, self.parsed.password or "")
            if self.parsed.encrypted:
                bolt_config = bolt_config.with_encryption(True)
            bolt_config = with_default_timeout(bolt_config, self.default_timeout)
            self.logger.debug(f"Building Bolt driver for {self.alias!r} at {self.parsed.address}")
            return BoltDriver(self.parsed.address, bolt_config, logger=self.logger)

        if config is not None and not isinstance(config, HttpConfiguration):
            raise ConfigurationError(f"Connection {self.alias!r} needs an HttpConfiguration")
        http_config = with_default_timeout(config or HttpConfiguration(), self.default_timeout)
        self.logger.debug(f"Building HTTP driver for {self.alias!r} at {self.parsed.address}")
        return HttpDriver(self.uri, http_config, logger=self.logger, default_port=self.default_http_port)

    # Session
    @property
    def session(self) -> Session:
        """The connection's session, created on first access."""
        if self._session is None:
            with self._session_lock:
                if self._session is None:
                    self._session = self.driver.session()
        return self._session

    def get_session(self) -> Session:
        return self.session

    @property
    def has_session(self) -> bool:
        return self._session is not None

    # Execution
    def create_pipeline(self, query: Optional[str] = None, parameters: Optional[Mapping[str, Any]] = None,
                        tag: Optional[str] = None) -> Pipeline:
        return self.session.create_pipeline(query, parameters or {}, tag)

    async def run(self, statement: str, parameters: Optional[Mapping[str, Any]] = None,
                  tag: Optional[str] = None) -> RecordCursor:
        if not statement:
            raise ValueError(f"Expected a non-empty Cypher statement, got {statement!r}")
        return await self.session.run(statement, parameters or {}, tag)

    async def run_mixed(self, queue: List[Union[Stack, Statement]], tag: Optional[str] = None) -> ResultCollection:
        """Send Stacks and loose Statements as one pipeline, in insertion order."""
        pipeline = self.create_pipeline(tag=tag)
        for statement in flatten(queue):
            pipeline.push_statement(statement)
        return await pipeline.run()

    def get_transaction(self) -> DriverTransaction:
        return self.session.transaction()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
        await self.driver.close()

    def __repr__(self) -> str:
        return f"Connection(alias={self.alias!r}, address={self.parsed.address!r}, kind={self.kind.value})"

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import unquote, urlsplit
from logging import Logger, getLogger as logging_getLogger

import httpx

from ..exceptions import ConfigurationError, FailureEffect, TransportFailure
from ..result import RecordCursor, ResultCollection
from ..statement import Statement
from .base import Driver, Pipeline, Session
from .config import HttpConfiguration, DEFAULT_TIMEOUT

DEFAULT_HTTP_PORT = 7474

JSON_HEADERS = {
    "Accept": "application/json;charset=UTF-8",
    "Content-Type": "application/json",
}


def statement_payload(statements: List[Statement]) -> Dict[str, Any]:
    return {
        "statements": [
            {
                "statement": statement.text,
                "parameters": statement.parameters,
                "resultDataContents": ["row"],
                "includeStats": True,
            }
            for statement in statements
        ]
    }


def parse_transaction_id(body: Mapping[str, Any]) -> int:
    """Extract the id from the ``commit`` URL returned when a transaction begins."""
    commit_url = body.get("commit")
    if not commit_url:
        raise TransportFailure("Begin response did not contain a commit URL")
    parts = commit_url.rstrip("/").split("/")
    try:
        return int(parts[-2])
    except (IndexError, ValueError) as e:
        raise TransportFailure(f"Unexpected commit URL {commit_url!r}") from e


class HttpSession(Session):
    """Session over the HTTP transactional endpoint ``/db/{database}/tx``."""

    def __init__(self, client: httpx.AsyncClient, database: str, logger: Optional[Logger] = None) -> None:
        self.client = client
        self.database = database
        self.current_transaction = None
        self.logger = logger or logging_getLogger(__name__)

    @property
    def base_path(self) -> str:
        return f"/db/{self.database}/tx"

    async def _request(self, method: str, path: str, statements: Optional[List[Statement]] = None) -> Dict[str, Any]:
        payload = statement_payload(statements or [])
        try:
            if method == "DELETE":
                response = await self.client.delete(path)
            else:
                response = await self.client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise TransportFailure(f"HTTP request to {path} failed: {e}", effect=FailureEffect.NONE) from e

        body: Dict[str, Any] = {}
        if response.content:
            try:
                body = response.json()
            except ValueError as e:
                raise TransportFailure(f"Invalid JSON from {path}: {e}") from e

        errors = body.get("errors") or []
        if errors:
            error = errors[0]
            raise TransportFailure(error.get("message", "Unknown error"), status_code=error.get("code"))
        if response.is_error:
            raise TransportFailure(f"HTTP {response.status_code} from {path}", effect=FailureEffect.NONE)
        return body

    @staticmethod
    def _collect(body: Mapping[str, Any], statements: List[Statement], tag: Optional[str] = None) -> ResultCollection:
        results = ResultCollection(tag=tag)
        payloads = body.get("results") or []
        for index, statement in enumerate(statements):
            result = payloads[index] if index < len(payloads) else {}
            columns = result.get("columns", [])
            records = [dict(zip(columns, row.get("row", []))) for row in result.get("data", [])]
            results.add(RecordCursor(statement, keys=columns, records=records, stats=result.get("stats")))
        return results

    async def run(self, text: str, parameters: Optional[Mapping[str, Any]] = None,
                  tag: Optional[str] = None) -> RecordCursor:
        statements = [Statement.create(text, parameters, tag)]
        body = await self._request("POST", f"{self.base_path}/commit", statements)
        return self._collect(body, statements)[0]

    async def flush(self, pipeline: Pipeline) -> ResultCollection:
        statements = pipeline.statements()
        body = await self._request("POST", f"{self.base_path}/commit", statements)
        return self._collect(body, statements, pipeline.tag)

    async def begin(self) -> int:
        body = await self._request("POST", self.base_path)
        return parse_transaction_id(body)

    async def push_to_transaction(self, transaction_id: int, statements: List[Statement]) -> ResultCollection:
        body = await self._request("POST", f"{self.base_path}/{transaction_id}", statements)
        return self._collect(body, statements)

    async def commit_transaction(self, transaction_id: int) -> None:
        await self._request("POST", f"{self.base_path}/{transaction_id}/commit")

    async def rollback_transaction(self, transaction_id: int) -> None:
        await self._request("DELETE", f"{self.base_path}/{transaction_id}")

    async def close(self) -> None:
        self.current_transaction = None


def split_http_uri(uri: str, default_port: int = DEFAULT_HTTP_PORT) -> Tuple[str, Optional[str], Optional[str]]:
    """Split ``uri`` into a base URL without credentials, user and password."""
    parts = urlsplit(uri)
    if not parts.hostname:
        raise ConfigurationError(f"Unable to build a driver from uri {uri!r}")
    try:
        port = parts.port or default_port
    except ValueError as e:
        raise ConfigurationError(f"Invalid port in uri {uri!r}") from e
    base_url = f"{parts.scheme}://{parts.hostname}:{port}"
    user = unquote(parts.username) if parts.username else None
    password = unquote(parts.password) if parts.password else None
    return base_url, user, password


class HttpDriver(Driver):
    """HTTP driver, built from the full URI and the connection's configuration."""

    def __init__(self, uri: str, config: Optional[HttpConfiguration] = None,
                 logger: Optional[Logger] = None, *, default_port: int = DEFAULT_HTTP_PORT) -> None:
        self.uri = uri
        self.config = config or HttpConfiguration(timeout=DEFAULT_TIMEOUT)
        self.logger = logger or logging_getLogger(__name__)
        self.base_url, user, password = split_http_uri(uri, default_port)
        user = self.config.user or user
        password = self.config.password or password
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=(user, password or "") if user else None,
            timeout=self.config.timeout if self.config.timeout is not None else DEFAULT_TIMEOUT,
            headers={**JSON_HEADERS, **self.config.headers},
            transport=self.config.transport,
        )

    def session(self) -> HttpSession:
        return HttpSession(self.client, self.config.database, self.logger)

    async def close(self) -> None:
        await self.client.aclose()

    def __repr__(self) -> str:
        return f"HttpDriver(base_url={self.base_url!r}, timeout={self.config.timeout!r})"

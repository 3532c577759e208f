"""Database probes: open one connection, release it, report.

Both dialects go through SQLAlchemy's asyncio engine with ``NullPool`` so
every invocation owns exactly one fresh DBAPI connection and nothing is
kept between runs.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from ..connection_strings import MSSQL, ORACLE, Dialect, augment, parse_connection_string
from ..errors import MalformedConnectionString
from ..models import EndpointDefinition
from ..results import ConnectionTestResult
from .base import BaseProbe

logger = logging.getLogger(__name__)


class SqlProbe(BaseProbe):
    """Connect-then-close check for one SQL dialect."""

    dialect: Dialect
    applies_certificate_bypass = False

    async def probe(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        timeout = self.settings.db_timeout
        logger.debug("Opening %s connection for %r", self.name, endpoint.name)
        try:
            connection_string = augment(
                endpoint.connection_string,
                timeout,
                self.applies_certificate_bypass and endpoint.ignore_ssl_errors,
                dialect=self.dialect,
            )
            await self.with_deadline(
                self._open_and_release(connection_string, timeout),
                timeout + self.settings.deadline_grace,
                f"{self.name} connection",
            )
        except Exception as exc:
            return self.failure(endpoint, exc)
        return self.success(endpoint)

    async def _open_and_release(self, connection_string: str, timeout: int) -> None:
        engine = self.create_engine(connection_string, timeout)
        try:
            async with engine.connect():
                pass
        finally:
            await engine.dispose()

    def create_engine(self, connection_string: str, timeout: int) -> AsyncEngine:  # pragma: no cover - abstract
        raise NotImplementedError


class MssqlProbe(SqlProbe):
    """SQL Server via ODBC (``mssql+aioodbc``)."""

    name = "mssql"
    dialect = MSSQL
    applies_certificate_bypass = True

    def create_engine(self, connection_string: str, timeout: int) -> AsyncEngine:
        url = URL.create("mssql+aioodbc", query={"odbc_connect": connection_string})
        # pyodbc's login timeout backs up the timeout key in the string
        return create_async_engine(url, poolclass=NullPool, connect_args={"timeout": timeout})


_ORACLE_USER_KEYS = ("User Id", "User", "UID", "Username")
_ORACLE_PASSWORD_KEYS = ("Password", "PWD")
_ORACLE_DSN_KEYS = ("Data Source", "DSN", "Server")


def _first(builder, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = builder.get(key)
        if value:
            return value
    return None


def oracle_connect_args(connection_string: str) -> dict[str, Any]:
    """Map an ADO-style Oracle connection string onto python-oracledb arguments."""

    builder = parse_connection_string(connection_string)
    dsn = _first(builder, _ORACLE_DSN_KEYS)
    if not dsn:
        raise MalformedConnectionString("Oracle connection string has no 'Data Source'")
    args: dict[str, Any] = {"dsn": dsn}
    user = _first(builder, _ORACLE_USER_KEYS)
    if user:
        args["user"] = user
    password = _first(builder, _ORACLE_PASSWORD_KEYS)
    if password is not None:
        args["password"] = password
    raw_timeout = builder.get(ORACLE.timeout_key)
    if raw_timeout:
        try:
            args["tcp_connect_timeout"] = float(raw_timeout)
        except ValueError as exc:
            raise MalformedConnectionString(
                f"invalid {ORACLE.timeout_key} value {raw_timeout!r}"
            ) from exc
    return args


class OracleProbe(SqlProbe):
    """Oracle via python-oracledb in asyncio mode.

    ``ignore_ssl_errors`` is deliberately not applied; Oracle connection
    strings have no certificate bypass toggle.
    """

    name = "oracle"
    dialect = ORACLE

    def create_engine(self, connection_string: str, timeout: int) -> AsyncEngine:
        return create_async_engine(
            URL.create("oracle+oracledb_async"),
            poolclass=NullPool,
            connect_args=oracle_connect_args(connection_string),
        )


__all__ = ["SqlProbe", "MssqlProbe", "OracleProbe", "oracle_connect_args"]

"""SQLAlchemy-based implementation of the ConnectionHandlePort.

Connections go through a bounded SQLAlchemy QueuePool using the PyMySQL
driver. Each ping and each prepared statement checks out one pooled
connection and returns it before the call (or the statement scope) ends.
"""

from __future__ import annotations

import logging
import ssl
from types import TracebackType
from typing import Any

import pymysql
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from mysql_healthcheck.domain.exceptions import (
    ConnectionCloseError,
    ConnectionUnavailableError,
    ProbeQueryError,
)
from mysql_healthcheck.domain.settings import ConnectionSettings, TLSSettings

logger = logging.getLogger(__name__)

DRIVER_NAME = "mysql+pymysql"
DATABASE_POOL_SIZE = 5
DATABASE_CONN_MAX_LIFETIME = 5 * 60  # seconds
DATABASE_CONNECT_TIMEOUT = 1  # seconds
DATABASE_POOL_TIMEOUT = 10.0  # seconds
# A stale pooled connection gets one retry on a fresh checkout
PING_ATTEMPTS = 2


def build_url(settings: ConnectionSettings) -> URL:
    """Construct the SQLAlchemy URL (DSN) for the configured node.

    A unix socket takes precedence over host and port.

    Args:
        settings: Connection settings.

    Returns:
        SQLAlchemy URL without a database name.
    """
    query: dict[str, str] = {}
    host: str | None = settings.host
    port = settings.port

    if settings.unix_socket is not None:
        query["unix_socket"] = settings.unix_socket
        host = None
        port = None

    return URL.create(
        DRIVER_NAME,
        username=settings.user,
        password=settings.password,
        host=host,
        port=port,
        query=query,
    )


def _build_custom_tls_context(tls: TLSSettings) -> ssl.SSLContext | None:
    """Build the custom TLS profile from CA and client certificate files.

    Returns:
        The context, or None if any TLS material could not be loaded.
    """
    context = ssl.create_default_context()

    try:
        if tls.ca is not None:
            context.load_verify_locations(cafile=tls.ca)
        if tls.cert is not None and tls.key is not None:
            context.load_cert_chain(certfile=tls.cert, keyfile=tls.key)
    except (OSError, ssl.SSLError) as e:
        logger.error(f"Failed to load custom TLS configuration, skipping it: {e}")
        return None

    return context


def build_tls_context(tls: TLSSettings) -> ssl.SSLContext | None:
    """Create the TLS context for the connection, if any.

    Later options override earlier ones: required gives a verifying default
    context, a CA file gives the custom profile, skip_verify gives an
    unverified context.

    Args:
        tls: TLS settings.

    Returns:
        An SSLContext, or None for a plaintext connection.
    """
    context: ssl.SSLContext | None = None

    if not tls.enabled:
        return None

    if tls.required:
        context = ssl.create_default_context()

    if tls.ca is not None:
        custom_context = _build_custom_tls_context(tls)
        if custom_context is not None:
            context = custom_context

    if tls.skip_verify:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


def build_connect_args(settings: ConnectionSettings) -> dict[str, Any]:
    """Build the driver keyword arguments for every pooled connection.

    Args:
        settings: Connection settings.

    Returns:
        Keyword arguments passed to pymysql.connect().
    """
    connect_args: dict[str, Any] = {"connect_timeout": DATABASE_CONNECT_TIMEOUT}

    tls_context = build_tls_context(settings.tls)
    if tls_context is not None:
        connect_args["ssl"] = tls_context

    return connect_args


class SQLAlchemyStatement:
    """Scoped statement holding one pooled connection until closed."""

    def __init__(self, connection: Connection, query: str) -> None:
        self._connection = connection
        self._query = query
        self._closed = False

    def query_row(self) -> tuple[Any, ...]:
        """Execute the query and return its only row.

        Raises:
            ProbeQueryError: If execution fails or the result is not exactly one row.
        """
        try:
            result = self._connection.exec_driver_sql(
                self._query, execution_options={"no_parameters": True}
            )
            row = result.one()
        except SQLAlchemyError as e:
            raise ProbeQueryError(
                f"Query failed: {e}", query=self._query, original_error=e
            ) from e

        return tuple(row)

    def close(self) -> None:
        """Return the pooled connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            self._connection.close()
        except SQLAlchemyError as e:
            logger.error(f"Error closing prepared statement: {e}")

    def __enter__(self) -> SQLAlchemyStatement:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class SQLAlchemyConnectionHandle:
    """Pooled connection handle for one database node.

    Thread safety:
        The underlying QueuePool is thread-safe; each call checks out its
        own connection.
    """

    def __init__(self, engine: Engine) -> None:
        """Initialize the handle.

        Args:
            engine: Engine owning the connection pool.
        """
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """Engine owning the connection pool."""
        return self._engine

    def ping(self) -> None:
        """Check out a connection and ping the server over it.

        A connection that fails the ping is invalidated and the ping is
        retried once, so connections left stale by a server restart do not
        report a live node as unavailable.

        Raises:
            ConnectionUnavailableError: If no connection can be made or the ping fails.
        """
        last_error: pymysql.MySQLError | None = None

        for _ in range(PING_ATTEMPTS):
            try:
                self._ping_once()
                return
            except pymysql.MySQLError as e:
                logger.debug(f"Ping failed on pooled connection: {e}")
                last_error = e
            except SQLAlchemyError as e:
                raise ConnectionUnavailableError(
                    f"Could not connect to database: {e}"
                ) from e

        raise ConnectionUnavailableError(
            f"Could not connect to database: {last_error}"
        ) from last_error

    def _ping_once(self) -> None:
        with self._engine.connect() as connection:
            try:
                connection.connection.driver_connection.ping(reconnect=False)
            except pymysql.MySQLError:
                # Drop the stale connection so the retry checks out a fresh one
                connection.invalidate()
                raise

    def prepare(self, query: str) -> SQLAlchemyStatement:
        """Check out a connection for a single query.

        Args:
            query: SQL text to run.

        Raises:
            ProbeQueryError: If no connection can be checked out.
        """
        try:
            connection = self._engine.connect()
        except SQLAlchemyError as e:
            raise ProbeQueryError(
                f"Could not prepare query: {e}", query=query, original_error=e
            ) from e

        return SQLAlchemyStatement(connection, query)

    def close(self) -> None:
        """Dispose of the pool and all its connections.

        Raises:
            ConnectionCloseError: If the pool cannot be disposed.
        """
        try:
            self._engine.dispose()
        except SQLAlchemyError as e:
            raise ConnectionCloseError(f"Failed to close database connections: {e}") from e


def open_connection(settings: ConnectionSettings) -> SQLAlchemyConnectionHandle:
    """Create a pooled connection handle for the configured node.

    No connection is made until the first ping or query.

    Args:
        settings: Connection settings.

    Returns:
        A new SQLAlchemyConnectionHandle.
    """
    url = build_url(settings)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Constructed DSN for MySQL: {url.render_as_string(hide_password=True)}"
        )

    engine = create_engine(
        url,
        pool_size=DATABASE_POOL_SIZE,
        max_overflow=0,
        pool_recycle=DATABASE_CONN_MAX_LIFETIME,
        pool_timeout=DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,
        connect_args=build_connect_args(settings),
    )

    return SQLAlchemyConnectionHandle(engine)

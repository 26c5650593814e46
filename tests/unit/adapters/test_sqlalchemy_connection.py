"""Unit tests for the SQLAlchemy connection handle."""

import ssl
from collections.abc import Iterator
from unittest.mock import MagicMock

import pymysql
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from mysql_healthcheck.adapters.ports import ConnectionHandlePort
from mysql_healthcheck.adapters.sqlalchemy_connection import (
    DATABASE_CONNECT_TIMEOUT,
    DATABASE_POOL_SIZE,
    SQLAlchemyConnectionHandle,
    build_connect_args,
    build_tls_context,
    build_url,
    open_connection,
)
from mysql_healthcheck.domain.exceptions import (
    ConnectionUnavailableError,
    ProbeQueryError,
)
from mysql_healthcheck.domain.settings import ConnectionSettings, TLSSettings


@pytest.fixture
def sqlite_handle(tmp_path) -> Iterator[SQLAlchemyConnectionHandle]:
    """Handle over a pooled SQLite engine, for statement behaviour."""
    engine = create_engine(f"sqlite:///{tmp_path / 'probe.db'}")
    handle = SQLAlchemyConnectionHandle(engine)
    yield handle
    handle.close()


@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.Database.DSN")
class TestBuildUrl:
    """Test DSN construction."""

    def test_tcp(self):
        url = build_url(
            ConnectionSettings(host="db1", port=3307, user="monitor", password="s3cret")
        )

        assert url.drivername == "mysql+pymysql"
        assert url.host == "db1"
        assert url.port == 3307
        assert url.username == "monitor"
        assert url.password == "s3cret"
        assert url.database is None
        assert "s3cret" not in url.render_as_string(hide_password=True)

    def test_defaults(self):
        url = build_url(ConnectionSettings())

        assert url.host == "localhost"
        assert url.port == 3306
        assert url.username is None

    def test_unix_socket_takes_precedence(self):
        url = build_url(
            ConnectionSettings(host="db1", unix_socket="/run/mysqld/mysqld.sock")
        )

        assert url.host is None
        assert url.port is None
        assert url.query["unix_socket"] == "/run/mysqld/mysqld.sock"


@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.Database.TLS")
class TestBuildTlsContext:
    """Test TLS profile precedence."""

    def test_plaintext_by_default(self):
        assert build_tls_context(TLSSettings()) is None
        assert "ssl" not in build_connect_args(ConnectionSettings())

    def test_client_certificate_alone_stays_plaintext(self, tmp_path):
        tls = TLSSettings(cert=str(tmp_path / "client.pem"), key=str(tmp_path / "client.key"))

        assert not tls.enabled
        assert build_tls_context(tls) is None

    def test_required_verifies(self):
        context = build_tls_context(TLSSettings(required=True))

        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname

    def test_skip_verify(self):
        context = build_tls_context(TLSSettings(skip_verify=True))

        assert context.verify_mode == ssl.CERT_NONE
        assert not context.check_hostname

    def test_skip_verify_overrides_required(self):
        context = build_tls_context(TLSSettings(required=True, skip_verify=True))

        assert context.verify_mode == ssl.CERT_NONE

    def test_unreadable_ca_is_skipped(self, tmp_path, caplog):
        tls = TLSSettings(ca=str(tmp_path / "missing-ca.pem"))

        assert build_tls_context(tls) is None
        assert "skipping" in caplog.text

    def test_unreadable_ca_falls_back_to_required(self, tmp_path):
        tls = TLSSettings(required=True, ca=str(tmp_path / "missing-ca.pem"))

        context = build_tls_context(tls)

        assert context is not None
        assert context.verify_mode == ssl.CERT_REQUIRED

    def test_invalid_ca_is_skipped(self, tmp_path):
        ca = tmp_path / "ca.pem"
        ca.write_text("not a certificate")

        assert build_tls_context(TLSSettings(ca=str(ca))) is None

    def test_connect_args(self):
        args = build_connect_args(ConnectionSettings(tls=TLSSettings(skip_verify=True)))

        assert args["connect_timeout"] == DATABASE_CONNECT_TIMEOUT
        assert isinstance(args["ssl"], ssl.SSLContext)


@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.Database.Statement")
class TestSQLAlchemyStatement:
    """Test statement scoping and row handling."""

    def test_implements_port(self, sqlite_handle):
        assert isinstance(sqlite_handle, ConnectionHandlePort)

    def test_query_row(self, sqlite_handle):
        with sqlite_handle.prepare("SELECT 'read_only', 'OFF'") as statement:
            assert statement.query_row() == ("read_only", "OFF")

    def test_no_rows(self, sqlite_handle):
        with sqlite_handle.prepare("SELECT 1 WHERE 1 = 0") as statement:
            with pytest.raises(ProbeQueryError):
                statement.query_row()

    def test_multiple_rows(self, sqlite_handle):
        with sqlite_handle.prepare("SELECT 1 UNION ALL SELECT 2") as statement:
            with pytest.raises(ProbeQueryError):
                statement.query_row()

    def test_query_error(self, sqlite_handle):
        query = "SELECT * FROM no_such_table"

        with sqlite_handle.prepare(query) as statement:
            with pytest.raises(ProbeQueryError) as exc_info:
                statement.query_row()

        assert exc_info.value.query == query
        assert exc_info.value.original_error is not None

    def test_percent_sign_not_treated_as_parameter(self, sqlite_handle):
        with sqlite_handle.prepare("SELECT 'wsrep%'") as statement:
            assert statement.query_row() == ("wsrep%",)

    def test_statement_returns_connection_to_pool(self, sqlite_handle):
        statement = sqlite_handle.prepare("SELECT 1")
        statement.query_row()

        assert sqlite_handle.engine.pool.checkedout() == 1
        statement.close()
        statement.close()
        assert sqlite_handle.engine.pool.checkedout() == 0


@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.Database.Connection")
class TestOpenConnection:
    """Test the pooled MySQL handle without a server."""

    def test_pool_configuration(self):
        handle = open_connection(ConnectionSettings(host="127.0.0.1"))

        try:
            assert handle.engine.pool.size() == DATABASE_POOL_SIZE
            assert handle.engine.url.drivername == "mysql+pymysql"
        finally:
            handle.close()

    def test_ping_unreachable_node(self):
        # Nothing listens on port 1
        handle = open_connection(ConnectionSettings(host="127.0.0.1", port=1))

        try:
            with pytest.raises(ConnectionUnavailableError):
                handle.ping()
        finally:
            handle.close()

    def test_prepare_unreachable_node(self):
        handle = open_connection(ConnectionSettings(host="127.0.0.1", port=1))

        try:
            with pytest.raises(ProbeQueryError):
                handle.prepare("SELECT 1")
        finally:
            handle.close()

    def test_close_is_repeatable(self):
        handle = open_connection(ConnectionSettings())

        handle.close()
        handle.close()


def pooled_connection(ping_error: Exception | None = None) -> MagicMock:
    """Mock SQLAlchemy connection whose driver ping optionally fails."""
    connection = MagicMock()
    connection.__enter__.return_value = connection
    connection.__exit__.return_value = False
    if ping_error is not None:
        connection.connection.driver_connection.ping.side_effect = ping_error
    return connection


def lost_connection() -> pymysql.err.OperationalError:
    return pymysql.err.OperationalError(2013, "Lost connection to MySQL server during query")


@pytest.mark.tier(1)
@pytest.mark.tra("Adapter.Database.Ping")
class TestPingStaleConnections:
    """A stale pooled connection must not report a live node as unavailable."""

    def test_stale_connection_invalidated_and_retried(self):
        stale = pooled_connection(lost_connection())
        fresh = pooled_connection()
        engine = MagicMock()
        engine.connect.side_effect = [stale, fresh]

        SQLAlchemyConnectionHandle(engine).ping()

        stale.invalidate.assert_called_once()
        fresh.connection.driver_connection.ping.assert_called_once_with(reconnect=False)
        fresh.invalidate.assert_not_called()
        assert engine.connect.call_count == 2

    def test_repeated_ping_failure_is_unavailable(self):
        engine = MagicMock()
        engine.connect.side_effect = [
            pooled_connection(lost_connection()),
            pooled_connection(lost_connection()),
        ]

        with pytest.raises(ConnectionUnavailableError, match="Lost connection"):
            SQLAlchemyConnectionHandle(engine).ping()

        assert engine.connect.call_count == 2

    def test_connect_failure_is_not_retried(self):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError(
            "connect", {}, Exception("Connection refused")
        )

        with pytest.raises(ConnectionUnavailableError):
            SQLAlchemyConnectionHandle(engine).ping()

        assert engine.connect.call_count == 1

    def test_pool_pings_connections_on_checkout(self):
        handle = open_connection(ConnectionSettings(host="127.0.0.1"))

        try:
            assert handle.engine.pool._pre_ping
        finally:
            handle.close()

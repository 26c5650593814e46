"""Unit tests for the probe functions."""

import pytest

from mysql_healthcheck.domain.status import ReplicationState
from mysql_healthcheck.usecases.probes import (
    READ_ONLY_QUERY,
    WSREP_LOCAL_STATE_QUERY,
    probe_custom_query,
    probe_read_only,
    probe_replication_state,
)
from tests.unit.fakes import FakeConnectionHandle


@pytest.fixture
def connection() -> FakeConnectionHandle:
    """Healthy, writable, synced node."""
    return FakeConnectionHandle()


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.Probe.ReplicationState")
class TestProbeReplicationState:
    """Test the wsrep_local_state probe."""

    @pytest.mark.parametrize("state", list(ReplicationState))
    def test_reports_state(self, connection, state):
        connection.set_state(state)

        result = probe_replication_state(connection)

        assert result.state is state
        assert not result.failed
        assert connection.prepared == [WSREP_LOCAL_STATE_QUERY]

    def test_accepts_integer_column(self, connection):
        connection.set_row(WSREP_LOCAL_STATE_QUERY, ("wsrep_local_state", 4))

        assert probe_replication_state(connection).state is ReplicationState.SYNCED

    def test_query_error_reports_joining(self, connection, caplog):
        connection.fail_query(WSREP_LOCAL_STATE_QUERY, "Unknown system variable")

        result = probe_replication_state(connection)

        assert result.state is ReplicationState.JOINING
        assert result.failed
        assert "Unknown system variable" in caplog.text

    def test_prepare_error_reports_joining(self, connection):
        connection.fail_prepare(WSREP_LOCAL_STATE_QUERY)

        result = probe_replication_state(connection)

        assert result.state is ReplicationState.JOINING
        assert result.failed

    def test_no_rows_reports_joining(self, connection):
        # Non-Galera servers have no wsrep_local_state status variable
        connection.set_row(WSREP_LOCAL_STATE_QUERY, None)

        assert probe_replication_state(connection).failed

    def test_wrong_column_count_reports_joining(self, connection):
        connection.set_row(WSREP_LOCAL_STATE_QUERY, ("4",))

        result = probe_replication_state(connection)

        assert result.state is ReplicationState.JOINING
        assert "expected 2 columns" in result.error

    @pytest.mark.parametrize("value", ["0", "5", "synced", None])
    def test_unexpected_value_reports_joining(self, connection, value):
        connection.set_row(WSREP_LOCAL_STATE_QUERY, ("wsrep_local_state", value))

        result = probe_replication_state(connection)

        assert result.state is ReplicationState.JOINING
        assert result.failed

    def test_statement_released(self, connection):
        connection.fail_query(WSREP_LOCAL_STATE_QUERY)

        probe_replication_state(connection)

        assert connection.open_statements == 0


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.Probe.ReadOnly")
class TestProbeReadOnly:
    """Test the read_only probe."""

    def test_off_is_writable(self, connection):
        result = probe_read_only(connection)

        assert not result.read_only
        assert not result.failed
        assert connection.prepared == [READ_ONLY_QUERY]

    @pytest.mark.parametrize("value", ["ON", "off", "1", ""])
    def test_anything_but_off_is_read_only(self, connection, value):
        connection.set_read_only(value)

        assert probe_read_only(connection).read_only

    def test_bytes_value_decoded(self, connection):
        connection.set_row(READ_ONLY_QUERY, (b"read_only", b"OFF"))

        assert not probe_read_only(connection).read_only

    def test_query_error_reports_read_only(self, connection, caplog):
        connection.fail_query(READ_ONLY_QUERY, "Lost connection")

        result = probe_read_only(connection)

        assert result.read_only
        assert result.failed
        assert "Lost connection" in caplog.text

    def test_wrong_column_count_reports_read_only(self, connection):
        connection.set_row(READ_ONLY_QUERY, ("read_only", "OFF", "extra"))

        result = probe_read_only(connection)

        assert result.read_only
        assert result.failed
        assert connection.open_statements == 0


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.Probe.CustomQuery")
class TestProbeCustomQuery:
    """Test the custom query probe."""

    QUERY = "SELECT COUNT(*) FROM heartbeat;"

    def test_match(self, connection):
        connection.set_row(self.QUERY, (1,))

        result = probe_custom_query(connection, self.QUERY, "1")

        assert result.matched
        assert result.actual == "1"

    def test_mismatch(self, connection, caplog):
        connection.set_row(self.QUERY, ("0",))

        result = probe_custom_query(connection, self.QUERY, "1")

        assert not result.matched
        assert not result.failed
        assert result.actual == "0"
        assert "incorrect" in caplog.text

    def test_bytes_value_decoded(self, connection):
        connection.set_row(self.QUERY, (b"ok",))

        assert probe_custom_query(connection, self.QUERY, "ok").matched

    def test_query_error(self, connection):
        connection.fail_query(self.QUERY)

        result = probe_custom_query(connection, self.QUERY, "1")

        assert not result.matched
        assert result.failed

    def test_no_columns(self, connection):
        connection.set_row(self.QUERY, ())

        result = probe_custom_query(connection, self.QUERY, "1")

        assert not result.matched
        assert result.failed

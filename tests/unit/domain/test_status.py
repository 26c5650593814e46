"""Unit tests for NodeStatus and ReplicationState."""

import pytest

from mysql_healthcheck.domain.status import NodeStatus, ReplicationState


@pytest.mark.tier(1)
@pytest.mark.tra("Domain.Invariant.NodeStatus")
class TestNodeStatus:
    """Test NodeStatus reporting attributes."""

    @pytest.mark.parametrize(
        ("status", "message", "exit_code", "http_status"),
        [
            (NodeStatus.AVAILABLE, "MySQL cluster node is ready.", 0, 200),
            (NodeStatus.READ_ONLY, "MySQL cluster node is read-only.", 2, 503),
            (NodeStatus.NOT_READY, "MySQL cluster node is not ready.", 3, 503),
            (
                NodeStatus.UNAVAILABLE,
                "Could not connect to the MySQL cluster node.",
                1,
                503,
            ),
        ],
    )
    def test_reporting_attributes(self, status, message, exit_code, http_status):
        assert status.message == message
        assert status.exit_code == exit_code
        assert status.http_status == http_status

    def test_only_available_is_available(self):
        assert NodeStatus.AVAILABLE.is_available
        assert [s for s in NodeStatus if s.is_available] == [NodeStatus.AVAILABLE]

    def test_exit_codes_are_distinct(self):
        assert len({s.exit_code for s in NodeStatus}) == len(NodeStatus)

    def test_ordered_by_severity(self):
        assert (
            NodeStatus.AVAILABLE
            < NodeStatus.READ_ONLY
            < NodeStatus.NOT_READY
            < NodeStatus.UNAVAILABLE
        )
        assert max(NodeStatus) is NodeStatus.UNAVAILABLE
        assert NodeStatus.READ_ONLY >= NodeStatus.READ_ONLY
        assert NodeStatus.NOT_READY <= NodeStatus.UNAVAILABLE

    def test_comparison_with_other_types_is_unsupported(self):
        with pytest.raises(TypeError):
            NodeStatus.AVAILABLE < 1  # noqa: B015


@pytest.mark.tier(1)
@pytest.mark.tra("Domain.Invariant.ReplicationState")
class TestReplicationState:
    """Test ReplicationState wire values."""

    def test_wsrep_local_state_values(self):
        assert ReplicationState(1) is ReplicationState.JOINING
        assert ReplicationState(2) is ReplicationState.DONOR
        assert ReplicationState(3) is ReplicationState.JOINED
        assert ReplicationState(4) is ReplicationState.SYNCED

    @pytest.mark.parametrize("value", [0, 5, -1])
    def test_unknown_values_are_rejected(self, value):
        with pytest.raises(ValueError):
            ReplicationState(value)

"""Node status and replication state enumerations."""

from __future__ import annotations

from enum import Enum, IntEnum


class ReplicationState(IntEnum):
    """State of the local wsrep provider, as reported by wsrep_local_state.

    Attributes:
        JOINING: Node is in the process of joining the cluster.
        DONOR: Node is providing a state snapshot transfer to a joining node.
        JOINED: Node has received the snapshot but is not synced yet.
        SYNCED: Node is in the cluster and fully operational.
    """

    JOINING = 1
    DONOR = 2
    JOINED = 3
    SYNCED = 4


# message, exit code, HTTP status, severity
_STATUS_DETAILS: dict[str, tuple[str, int, int, int]] = {
    "available": ("MySQL cluster node is ready.", 0, 200, 0),
    "read_only": ("MySQL cluster node is read-only.", 2, 503, 1),
    "not_ready": ("MySQL cluster node is not ready.", 3, 503, 2),
    "unavailable": ("Could not connect to the MySQL cluster node.", 1, 503, 3),
}


class NodeStatus(Enum):
    """Verdict of a full node evaluation.

    Members are ordered by severity (AVAILABLE is the least severe and the
    only successful outcome). Each member carries the message, standalone
    exit code and HTTP status used to report it.

    Attributes:
        AVAILABLE: Node accepts read/write traffic.
        READ_ONLY: Node is synced but read-only, and read-only nodes are
                   not treated as available.
        NOT_READY: Node is reachable but its replication state disqualifies it.
        UNAVAILABLE: Node could not be reached.
    """

    AVAILABLE = "available"
    READ_ONLY = "read_only"
    NOT_READY = "not_ready"
    UNAVAILABLE = "unavailable"

    @property
    def message(self) -> str:
        """Human-readable status line."""
        return _STATUS_DETAILS[self.value][0]

    @property
    def exit_code(self) -> int:
        """Process exit code for standalone mode."""
        return _STATUS_DETAILS[self.value][1]

    @property
    def http_status(self) -> int:
        """HTTP status code for daemon mode."""
        return _STATUS_DETAILS[self.value][2]

    @property
    def severity(self) -> int:
        """Severity rank, 0 for AVAILABLE up to 3 for UNAVAILABLE."""
        return _STATUS_DETAILS[self.value][3]

    @property
    def is_available(self) -> bool:
        """True only for AVAILABLE."""
        return self is NodeStatus.AVAILABLE

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NodeStatus):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: object) -> bool:
        if not isinstance(other, NodeStatus):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, NodeStatus):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, NodeStatus):
            return NotImplemented
        return self.severity >= other.severity

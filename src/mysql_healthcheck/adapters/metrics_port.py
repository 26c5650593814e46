"""Port interface and no-op implementation for metrics collection.

Metrics ports follow fire-and-forget semantics: implementations may
buffer, sample, or drop metrics as needed. No exceptions should propagate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mysql_healthcheck.domain.status import NodeStatus

ProbeName = Literal["ping", "replication_state", "read_only", "custom_query"]


@runtime_checkable
class MetricsPort(Protocol):
    """Port interface for metrics collection.

    Contract:
        - All methods are fire-and-forget (no return value, no exceptions)
        - Implementations must be thread-safe: evaluations run concurrently
        - Implementations may no-op if metrics are disabled
    """

    def record_status(self, status: NodeStatus) -> None:
        """Record the verdict of one evaluation.

        Args:
            status: Verdict returned by the evaluator.
        """
        ...

    def record_probe_failure(self, probe: ProbeName) -> None:
        """Record a failed probe.

        Args:
            probe: Name of the probe that failed.
        """
        ...


class NoOpMetricsAdapter:
    """No-operation metrics adapter for when metrics are disabled.

    Example:
        >>> adapter = NoOpMetricsAdapter()
        >>> adapter.record_status(NodeStatus.AVAILABLE)  # Does nothing
    """

    def record_status(self, status: NodeStatus) -> None:
        """No-op."""
        pass

    def record_probe_failure(self, probe: ProbeName) -> None:
        """No-op."""
        pass

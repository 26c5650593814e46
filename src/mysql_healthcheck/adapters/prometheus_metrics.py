"""Prometheus metrics adapter for mysql-healthcheck.

Implements MetricsPort using the prometheus-client library. Metrics live on
a dedicated CollectorRegistry so that one adapter can outlive any number of
daemon reload cycles without duplicate registration.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge

from mysql_healthcheck.adapters.metrics_port import ProbeName
from mysql_healthcheck.domain.status import NodeStatus


class PrometheusMetricsAdapter:
    """Prometheus implementation of MetricsPort.

    Example:
        >>> adapter = PrometheusMetricsAdapter()
        >>> adapter.record_status(NodeStatus.READ_ONLY)  # gauge set to 1
    """

    def __init__(
        self,
        prefix: str = "mysql_healthcheck",
        registry: CollectorRegistry | None = None,
    ) -> None:
        """Initialize Prometheus collectors.

        Args:
            prefix: Metric name prefix. Defaults to "mysql_healthcheck".
            registry: Registry to register collectors on. A new one is
                      created if not provided.
        """
        self._registry = registry or CollectorRegistry()

        self._node_status = Gauge(
            f"{prefix}_node_status",
            "Last evaluated node status: 0=available, 1=read_only, 2=not_ready, 3=unavailable",
            registry=self._registry,
        )
        self._evaluations = Counter(
            f"{prefix}_evaluations",
            "Node evaluations by resulting status",
            ["status"],
            registry=self._registry,
        )
        self._probe_failures = Counter(
            f"{prefix}_probe_failures",
            "Failed probes by probe name",
            ["probe"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Registry holding this adapter's collectors."""
        return self._registry

    def record_status(self, status: NodeStatus) -> None:
        """Set the status gauge and count the evaluation.

        Args:
            status: Verdict of the evaluation.
        """
        self._node_status.set(status.severity)
        self._evaluations.labels(status=status.value).inc()

    def record_probe_failure(self, probe: ProbeName) -> None:
        """Count a failed probe.

        Args:
            probe: Name of the failed probe.
        """
        self._probe_failures.labels(probe=probe).inc()

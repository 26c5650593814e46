"""Status evaluator use case for deciding node availability."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mysql_healthcheck.adapters.metrics_port import NoOpMetricsAdapter
from mysql_healthcheck.adapters.ports import ConnectionHandlePort
from mysql_healthcheck.domain.exceptions import ConnectionUnavailableError
from mysql_healthcheck.domain.settings import EvaluationConfig
from mysql_healthcheck.domain.status import NodeStatus, ReplicationState
from mysql_healthcheck.usecases.probes import (
    probe_custom_query,
    probe_read_only,
    probe_replication_state,
)

if TYPE_CHECKING:
    from mysql_healthcheck.adapters.metrics_port import MetricsPort, ProbeName

logger = logging.getLogger(__name__)


class StatusEvaluator:
    """Turns connectivity, replication state and read-only flag into a NodeStatus.

    Evaluation order is strict and short-circuiting:
    1. Ping the node. Failure -> UNAVAILABLE.
    2. Replication state. SYNCED, or DONOR when available_when_donor,
       continues; anything else -> NOT_READY.
    3. Read-only flag. Read-only and not available_when_readonly -> READ_ONLY,
       otherwise AVAILABLE.

    When a custom query is configured, steps 2 and 3 are replaced by the
    custom query check (match -> AVAILABLE, otherwise NOT_READY).

    Probe failures degrade to conservative signals, so evaluate() always
    returns a verdict and never raises.

    Thread safety:
        Holds no mutable state. Concurrent calls each run their own probes;
        the connection handle is responsible for synchronization.
    """

    def __init__(
        self,
        connection: ConnectionHandlePort,
        config: EvaluationConfig,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the status evaluator.

        Args:
            connection: Handle to the node being evaluated.
            config: Evaluation policy.
            metrics: Port for emitting evaluation metrics. Defaults to a
                     no-op adapter.
        """
        self._connection = connection
        self._config = config
        self._metrics: MetricsPort = metrics if metrics is not None else NoOpMetricsAdapter()

    @property
    def config(self) -> EvaluationConfig:
        """Evaluation policy in use."""
        return self._config

    def evaluate(self) -> NodeStatus:
        """Run one full evaluation against the node.

        Returns:
            The NodeStatus verdict.
        """
        status = self._evaluate()

        self._metrics.record_status(status)

        return status

    def _evaluate(self) -> NodeStatus:
        if not self._is_connected():
            return NodeStatus.UNAVAILABLE

        if self._config.uses_custom_query:
            return self._evaluate_custom_query()

        replication = probe_replication_state(self._connection)
        if replication.failed:
            self._record_probe_failure("replication_state")

        state = replication.state
        if not (
            state == ReplicationState.SYNCED
            or (state == ReplicationState.DONOR and self._config.available_when_donor)
        ):
            logger.debug(f"Node replication state is {state.name}")
            return NodeStatus.NOT_READY

        # A read-only node cannot change the verdict in this case
        if self._config.available_when_readonly:
            return NodeStatus.AVAILABLE

        read_only = probe_read_only(self._connection)
        if read_only.failed:
            self._record_probe_failure("read_only")

        if read_only.read_only:
            return NodeStatus.READ_ONLY

        return NodeStatus.AVAILABLE

    def _evaluate_custom_query(self) -> NodeStatus:
        # uses_custom_query guarantees both are set
        assert self._config.custom_query is not None
        assert self._config.custom_result is not None

        result = probe_custom_query(
            self._connection, self._config.custom_query, self._config.custom_result
        )
        if result.failed:
            self._record_probe_failure("custom_query")

        return NodeStatus.AVAILABLE if result.matched else NodeStatus.NOT_READY

    def _is_connected(self) -> bool:
        try:
            self._connection.ping()
        except ConnectionUnavailableError as e:
            logger.error(str(e))
            self._record_probe_failure("ping")
            return False

        return True

    def _record_probe_failure(self, probe: ProbeName) -> None:
        self._metrics.record_probe_failure(probe)

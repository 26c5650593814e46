"""Health service use case wrapping the status evaluator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from mysql_healthcheck.domain.status import NodeStatus

logger = logging.getLogger(__name__)


class StatusEvaluatorProtocol(Protocol):
    """Protocol for node status evaluation."""

    def evaluate(self) -> NodeStatus:
        """Evaluate the node."""
        ...


@dataclass(frozen=True)
class CheckResult:
    """Result of one health check.

    Attributes:
        status: Verdict of the evaluation.
    """

    status: NodeStatus

    @property
    def ready(self) -> bool:
        """True if the node is available."""
        return self.status.is_available

    @property
    def message(self) -> str:
        """Status line reported to CLI users and HTTP clients."""
        return self.status.message

    @property
    def exit_code(self) -> int:
        """Standalone exit code: 0 available, 1 unavailable, 2 read-only, 3 not ready."""
        return self.status.exit_code

    @property
    def http_status(self) -> int:
        """HTTP status code: 200 when available, 503 otherwise."""
        return self.status.http_status


class HealthService:
    """Runs health checks for the standalone and HTTP delivery modes.

    Each call to run_check() performs a fresh, independent evaluation.
    """

    def __init__(self, evaluator: StatusEvaluatorProtocol) -> None:
        """Initialize the health service.

        Args:
            evaluator: Evaluator for the node owned by this service.
        """
        self._evaluator = evaluator

    def run_check(self) -> CheckResult:
        """Evaluate the node once.

        Returns:
            CheckResult for the current node state.
        """
        return CheckResult(status=self._evaluator.evaluate())


def run_standalone_check(service: HealthService) -> int:
    """Run a single health check and report it through the log.

    Args:
        service: Health service for the configured node.

    Returns:
        Process exit code for the verdict.
    """
    logger.debug("Running standalone health check.")

    result = service.run_check()

    if result.ready:
        logger.info(result.message)
    else:
        logger.warning(result.message)

    return result.exit_code

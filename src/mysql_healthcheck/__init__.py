"""mysql-healthcheck: Availability probe for Galera cluster nodes."""

__version__ = "0.1.0"

from mysql_healthcheck.domain.exceptions import ConfigError, HealthcheckError
from mysql_healthcheck.domain.settings import EvaluationConfig, HealthcheckSettings
from mysql_healthcheck.domain.status import NodeStatus, ReplicationState
from mysql_healthcheck.usecases.status_evaluator import StatusEvaluator

__all__ = [
    "ConfigError",
    "EvaluationConfig",
    "HealthcheckError",
    "HealthcheckSettings",
    "NodeStatus",
    "ReplicationState",
    "StatusEvaluator",
]

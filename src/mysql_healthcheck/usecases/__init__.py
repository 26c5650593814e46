"""Use cases: Application logic layer."""

from mysql_healthcheck.usecases.config_loader import (
    ConfigLoader,
    ConfigProvider,
    build_settings,
)
from mysql_healthcheck.usecases.daemon_supervisor import CycleContext, DaemonSupervisor
from mysql_healthcheck.usecases.health_service import (
    CheckResult,
    HealthService,
    run_standalone_check,
)
from mysql_healthcheck.usecases.probes import (
    probe_custom_query,
    probe_read_only,
    probe_replication_state,
)
from mysql_healthcheck.usecases.status_evaluator import StatusEvaluator

__all__ = [
    "CheckResult",
    "ConfigLoader",
    "ConfigProvider",
    "CycleContext",
    "DaemonSupervisor",
    "HealthService",
    "StatusEvaluator",
    "build_settings",
    "probe_custom_query",
    "probe_read_only",
    "probe_replication_state",
    "run_standalone_check",
]

"""Domain layer: Entities with zero external dependencies."""

from mysql_healthcheck.domain.exceptions import (
    ConfigError,
    ConnectionCloseError,
    ConnectionUnavailableError,
    DaemonError,
    HealthcheckError,
    ProbeQueryError,
    ServerStartError,
    ShutdownTimeoutError,
)
from mysql_healthcheck.domain.lifecycle import DaemonState, LifecycleEvent
from mysql_healthcheck.domain.probes import (
    CustomQueryProbeResult,
    ReadOnlyProbeResult,
    ReplicationProbeResult,
)
from mysql_healthcheck.domain.settings import (
    ConnectionSettings,
    EvaluationConfig,
    HealthcheckSettings,
    HTTPSettings,
    TLSSettings,
)
from mysql_healthcheck.domain.status import NodeStatus, ReplicationState

__all__ = [
    "ConfigError",
    "ConnectionCloseError",
    "ConnectionSettings",
    "ConnectionUnavailableError",
    "CustomQueryProbeResult",
    "DaemonError",
    "DaemonState",
    "EvaluationConfig",
    "HealthcheckError",
    "HealthcheckSettings",
    "HTTPSettings",
    "LifecycleEvent",
    "NodeStatus",
    "ProbeQueryError",
    "ReadOnlyProbeResult",
    "ReplicationProbeResult",
    "ReplicationState",
    "ServerStartError",
    "ShutdownTimeoutError",
    "TLSSettings",
]

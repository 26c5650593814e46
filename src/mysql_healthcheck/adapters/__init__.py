"""Interface adapters: database connection, HTTP server, signals and metrics."""

from mysql_healthcheck.adapters.ports import (
    ConnectionHandlePort,
    HealthServerPort,
    PreparedStatementPort,
)
from mysql_healthcheck.adapters.metrics_port import MetricsPort, NoOpMetricsAdapter

__all__ = [
    "ConnectionHandlePort",
    "HealthServerPort",
    "MetricsPort",
    "NoOpMetricsAdapter",
    "PreparedStatementPort",
]

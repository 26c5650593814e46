"""Fake adapters for testing."""

from .fake_connection import FakeConnectionHandle, FakeStatement
from .fake_health_server import FakeHealthServer
from .fake_metrics import FakeMetricsAdapter, MetricCall

__all__ = [
    "FakeConnectionHandle",
    "FakeHealthServer",
    "FakeMetricsAdapter",
    "FakeStatement",
    "MetricCall",
]

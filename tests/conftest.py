"""
Root conftest.py for the mysql-healthcheck test suite.

Pytest plugin for responsibility (TRA) and tier markers.
- Warns about tests missing a tra or tier marker
- Enforces tier timeouts when pytest-timeout is installed

Usage:
    @pytest.mark.tier(1)
    @pytest.mark.tra("UseCase.StatusEvaluator")
    def test_something():
        ...

Configuration:
    Set MARKER_ENFORCE=1 to fail collection on missing markers
    Set TIER_TIMEOUT_MULTIPLIER to scale tier timeouts (e.g. on slow CI)
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


# Valid TRA namespace prefixes
VALID_TRA_PREFIXES = frozenset(
    [
        "Domain.Invariant.",
        "Domain.Policy.",
        "UseCase.",
        "Port.",
        "Adapter.",
        "Contract.",
    ]
)

# Tier timeout limits in seconds
TIER_TIMEOUTS: dict[int, float] = {
    1: 5.0,  # fast, in-memory
    2: 60.0,  # standard, real sockets and threads
    3: 300.0,  # slow, needs a database
}


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "tra(anchor): Test Responsibility Anchor - the single responsibility this test protects. "
        "Must start with one of: Domain.Invariant, Domain.Policy, UseCase, Port, Adapter, Contract",
    )
    config.addinivalue_line(
        "markers",
        "tier(level): Test tier (1=fast, 2=standard, 3=slow). Determines the timeout.",
    )
    config.addinivalue_line("markers", "unit: Unit tests (no sockets, no database)")
    config.addinivalue_line(
        "markers", "integration: Tests that start real HTTP servers or threads"
    )
    config.addinivalue_line("markers", "property: Property-based tests using Hypothesis")
    config.addinivalue_line(
        "markers",
        "no_parallel: Tests that cannot run in parallel (process-wide signal state)",
    )


def _get_tier(item: Item) -> int | None:
    """Extract tier level from item's markers."""
    marker = item.get_closest_marker("tier")
    if marker is not None and marker.args and marker.args[0] in TIER_TIMEOUTS:
        return int(marker.args[0])
    return None


def _marker_errors(items: list[Item]) -> list[str]:
    errors = []
    for item in items:
        tra = item.get_closest_marker("tra")
        if tra is None or not tra.args:
            errors.append(f"{item.nodeid}: Missing @pytest.mark.tra('...')")
        elif not any(str(tra.args[0]).startswith(p) for p in VALID_TRA_PREFIXES):
            errors.append(f"{item.nodeid}: Invalid TRA anchor '{tra.args[0]}'")

        if _get_tier(item) is None:
            errors.append(f"{item.nodeid}: Missing or invalid @pytest.mark.tier()")
    return errors


def _apply_tier_timeouts(items: list[Item]) -> None:
    """Add a timeout marker per tier unless the test sets its own."""
    try:
        import pytest_timeout as _  # type: ignore[import-untyped]  # noqa: F401
    except ImportError:
        return

    multiplier = float(os.environ.get("TIER_TIMEOUT_MULTIPLIER", "1.0"))

    for item in items:
        tier = _get_tier(item)
        if tier is None or item.get_closest_marker("timeout") is not None:
            continue
        item.add_marker(pytest.mark.timeout(TIER_TIMEOUTS[tier] * multiplier))


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Check markers at collection time and apply tier timeouts."""
    errors = _marker_errors(items)

    if errors:
        if os.environ.get("MARKER_ENFORCE") == "1":
            pytest.fail(
                "Marker Enforcement Errors:\n" + "\n".join(f"  - {e}" for e in errors),
                pytrace=False,
            )
        print("\nMarker Enforcement Warnings:")
        for error in errors[:20]:
            print(f"  {error}")

    _apply_tier_timeouts(items)

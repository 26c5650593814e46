"""Probe functions issued through a connection handle.

Probes never raise. A failure is logged and reported as the conservative
signal value (JOINING, read-only, no match) with the error attached to the
result.
"""

from __future__ import annotations

import logging

from mysql_healthcheck.adapters.ports import ConnectionHandlePort
from mysql_healthcheck.domain.exceptions import ProbeQueryError
from mysql_healthcheck.domain.probes import (
    CustomQueryProbeResult,
    ReadOnlyProbeResult,
    ReplicationProbeResult,
)
from mysql_healthcheck.domain.status import ReplicationState

logger = logging.getLogger(__name__)

# Returns status of the local wsrep instance.
WSREP_LOCAL_STATE_QUERY = "SHOW STATUS LIKE 'wsrep_local_state';"
# Determines if the node is in read-only mode.
READ_ONLY_QUERY = "SHOW GLOBAL VARIABLES LIKE 'read_only';"


def _query_row(connection: ConnectionHandlePort, query: str) -> tuple[object, ...]:
    with connection.prepare(query) as statement:
        return statement.query_row()


def probe_replication_state(connection: ConnectionHandlePort) -> ReplicationProbeResult:
    """Query wsrep_local_state from the node.

    Args:
        connection: Handle to the node.

    Returns:
        ReplicationProbeResult with the reported state, or JOINING and an
        error if the query failed or returned an unexpected row.
    """
    try:
        row = _query_row(connection, WSREP_LOCAL_STATE_QUERY)
        if len(row) != 2:
            raise ProbeQueryError(
                f"expected 2 columns, got {len(row)}", query=WSREP_LOCAL_STATE_QUERY
            )
        state = ReplicationState(int(row[1]))  # type: ignore[call-overload]
    except (ProbeQueryError, TypeError, ValueError) as e:
        logger.error(f"Error executing wsrep_local_state query: {e}")
        return ReplicationProbeResult(state=ReplicationState.JOINING, error=str(e))

    return ReplicationProbeResult(state=state)


def probe_read_only(connection: ConnectionHandlePort) -> ReadOnlyProbeResult:
    """Query the read_only global variable from the node.

    Args:
        connection: Handle to the node.

    Returns:
        ReadOnlyProbeResult with read_only=False only if the node reported
        "OFF"; read_only=True and an error if the query failed.
    """
    try:
        row = _query_row(connection, READ_ONLY_QUERY)
        if len(row) != 2:
            raise ProbeQueryError(
                f"expected 2 columns, got {len(row)}", query=READ_ONLY_QUERY
            )
    except ProbeQueryError as e:
        logger.error(f"Error executing read_only query: {e}")
        return ReadOnlyProbeResult(read_only=True, error=str(e))

    value = row[1]
    if isinstance(value, bytes):
        value = value.decode()

    return ReadOnlyProbeResult(read_only=value != "OFF")


def probe_custom_query(
    connection: ConnectionHandlePort, query: str, expected: str
) -> CustomQueryProbeResult:
    """Run an operator-configured query and compare its result.

    Args:
        connection: Handle to the node.
        query: Query to run. Must return exactly one row.
        expected: Expected string value of the first column.

    Returns:
        CustomQueryProbeResult with matched=True only on an exact match.
    """
    logger.debug(f"Executing custom query: {query}")

    try:
        row = _query_row(connection, query)
    except ProbeQueryError as e:
        logger.error(f"Error executing custom query: {e}")
        return CustomQueryProbeResult(matched=False, error=str(e))

    if not row:
        logger.error("Custom query returned no columns")
        return CustomQueryProbeResult(matched=False, error="no columns returned")

    value = row[0]
    actual = value.decode() if isinstance(value, bytes) else str(value)

    if actual != expected:
        logger.error(f"Custom query result is incorrect: {actual!r} != {expected!r}")
        return CustomQueryProbeResult(matched=False, actual=actual)

    return CustomQueryProbeResult(matched=True, actual=actual)

"""Daemon lifecycle enumerations."""

from enum import Enum


class LifecycleEvent(Enum):
    """Event sent from the signal listener to the daemon control loop.

    Attributes:
        RELOAD: Stop the current cycle and start a new one with fresh
                configuration and connection (SIGHUP).
        TERMINATE: Stop the current cycle and exit (SIGINT, SIGTERM).
    """

    RELOAD = "reload"
    TERMINATE = "terminate"


class DaemonState(Enum):
    """State of the daemon supervisor.

    Transitions: IDLE -> STARTING -> SERVING -> STOPPING -> STARTING | TERMINATED.
    """

    IDLE = "idle"
    STARTING = "starting"
    SERVING = "serving"
    STOPPING = "stopping"
    TERMINATED = "terminated"

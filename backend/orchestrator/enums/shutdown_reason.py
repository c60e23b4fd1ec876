"""
Shutdown trigger sources.
"""

from __future__ import annotations

from enum import Enum


class ShutdownReason(str, Enum):
    """
    Why the coordinator started teardown.

    Signals and a listener exit are clean; the rest are faults.
    """

    SIGINT = "SIGINT"
    SIGTERM = "SIGTERM"
    LISTENER_EXITED = "LISTENER_EXITED"
    FATAL_FAULT = "FATAL_FAULT"
    UNHANDLED_TASK_ERROR = "UNHANDLED_TASK_ERROR"

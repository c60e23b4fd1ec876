"""
Process-wide lifecycle state.

Rules:
- No behavior, no helper methods, no side effects.
- Transitions are owned exclusively by LifecycleCoordinator.
"""

from __future__ import annotations

from enum import Enum


class LifecycleState(str, Enum):
    """
    RUNNING -> SHUTTING_DOWN -> STOPPED, never backwards.
    """

    RUNNING = "RUNNING"
    SHUTTING_DOWN = "SHUTTING_DOWN"
    STOPPED = "STOPPED"

"""
Heartbeat monitor.

Responsibilities:
- Emit one HEARTBEAT record per interval, for the lifetime of the process
- Report the live session count (and outbound counters when available)

Non-responsibilities:
- Does not touch frame traffic
- Does not decide anything; a failing tick is swallowed

Its only stop action is cancelling the recurring task.
"""

from __future__ import annotations

import asyncio
from asyncio import Task
from typing import Any

from observability.logger import log_event
from session.registry import SessionRegistry


class HeartbeatMonitor:
    """
    idle -> (timer fires) -> reporting -> idle, looping until stop().
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        interval_s: float,
        outbound: Any = None,  # Type: OscUdpAdapter in practice
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")

        self._registry = registry
        self._interval_s = interval_s
        self._outbound = outbound
        self._task: Task[None] | None = None

        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the recurring timer. Must be called from the event loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="bridge-heartbeat")

    def stop(self) -> None:
        """Cancel the recurring timer. Idempotent."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()

    def tick(self) -> None:
        """Emit one liveness record. Never raises."""
        try:
            record: dict[str, Any] = {
                "event_type": "HEARTBEAT",
                "ws_clients": self._registry.live_sessions(),
            }
            counters = getattr(self._outbound, "counters", None)
            if counters is not None:
                record["osc_sent"] = counters.sent
                record["osc_failed"] = counters.failed
            log_event(record)
        except Exception:  # pylint: disable=broad-exception-caught
            pass
        finally:
            self.ticks += 1

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval_s)
                self.tick()
        except asyncio.CancelledError:
            return

"""
Lifecycle coordinator (process-wide shutdown).

Responsibilities:
- Single entry point trigger(reason) for every shutdown source:
  SIGINT/SIGTERM, loop exception handler, server task failure
- Run teardown exactly once, in order, each step isolated:
    (a) cancel the heartbeat timer
    (b) close every registered session, then clear the registry
    (c) close the inbound listener
    (d) close the outbound OSC transport
- Wait a short grace period, then report the exit status

Non-responsibilities:
- No frame processing
- No restart policy
"""

from __future__ import annotations

import asyncio
import inspect
import signal
from asyncio import Task
from typing import Any, Awaitable, Callable

from constants import CLEAN_EXIT_STATUS, FAULT_EXIT_STATUS
from observability.logger import log_event
from orchestrator.enums.lifecycle_state import LifecycleState
from orchestrator.enums.shutdown_reason import ShutdownReason
from session.registry import SessionRegistry


# ---------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------

StepFn = Callable[[], Awaitable[None] | None]
ExitFn = Callable[[int], Any]

_FAULT_REASONS = frozenset({
    ShutdownReason.FATAL_FAULT,
    ShutdownReason.UNHANDLED_TASK_ERROR,
})

_SIGNALS: tuple[tuple[signal.Signals, ShutdownReason], ...] = (
    (signal.SIGINT, ShutdownReason.SIGINT),
    (signal.SIGTERM, ShutdownReason.SIGTERM),
)


def exit_status_for(reason: ShutdownReason) -> int:
    """Faults exit non-zero so supervisors can tell them from a stop request."""
    return FAULT_EXIT_STATUS if reason in _FAULT_REASONS else CLEAN_EXIT_STATUS


# ---------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------

class LifecycleCoordinator:
    """
    Owns the RUNNING -> SHUTTING_DOWN -> STOPPED transitions.

    Components are injected (registry, outbound) or attached once they
    exist (heartbeat, listener), mirroring construction order at boot.

    exit_fn:
        Optional observer called with the exit status once STOPPED. The
        process runner does not use it: run_bridge() returns the status
        from wait_stopped() and main() hands it to sys.exit. Tests pass a
        recorder here.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        outbound: Any,  # Type: OscUdpAdapter in practice
        grace_s: float,
        exit_fn: ExitFn | None = None,
    ) -> None:
        self._registry = registry
        self._outbound = outbound
        self._grace_s = grace_s
        self._exit_fn = exit_fn

        self._heartbeat: Any = None
        self._close_listener: StepFn | None = None

        self._state = LifecycleState.RUNNING
        self._reason: ShutdownReason | None = None
        self._exit_status: int | None = None
        self._stopped = asyncio.Event()
        self._task: Task[None] | None = None

    # ------------------------------------------------------------------
    # Wiring helpers (called by the runner)
    # ------------------------------------------------------------------

    def attach_heartbeat(self, heartbeat: Any) -> None:
        """Attach the HeartbeatMonitor whose timer step (a) cancels."""
        self._heartbeat = heartbeat

    def attach_listener(self, close_listener: StepFn) -> None:
        """Attach the callable that closes the inbound listening socket."""
        self._close_listener = close_listener

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """
        Route signals and unhandled loop exceptions into trigger().
        """
        loop = loop or asyncio.get_running_loop()

        for sig, reason in _SIGNALS:
            try:
                loop.add_signal_handler(sig, self.trigger, reason)
            except (NotImplementedError, RuntimeError):
                # Event loops without add_signal_handler (e.g. Windows)
                signal.signal(
                    sig,
                    lambda _signum, _frame, r=reason: loop.call_soon_threadsafe(self.trigger, r),
                )

        loop.set_exception_handler(self._on_loop_exception)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def reason(self) -> ShutdownReason | None:
        return self._reason

    @property
    def accepting_frames(self) -> bool:
        return self._state is LifecycleState.RUNNING

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def trigger(self, reason: ShutdownReason) -> bool:
        """
        Begin shutdown. Must be called on the event loop thread.

        Returns False when shutdown was already underway (no-op).
        """
        if self._state is not LifecycleState.RUNNING:
            return False

        self._state = LifecycleState.SHUTTING_DOWN
        self._reason = reason
        self._exit_status = exit_status_for(reason)

        log_event({
            "event_type": "SHUTDOWN_BEGIN",
            "reason": reason.value,
            "ws_clients": self._registry.live_sessions(),
        })

        self._task = asyncio.get_running_loop().create_task(
            self._teardown(), name="bridge-shutdown"
        )
        return True

    def fail(self, exc: BaseException) -> bool:
        """Log an unrecoverable fault and begin shutdown."""
        log_event({
            "event_type": "FATAL_FAULT",
            "exception": type(exc).__name__,
            "message": str(exc),
        })
        return self.trigger(ShutdownReason.FATAL_FAULT)

    async def wait_stopped(self) -> int:
        """Block until teardown finished; returns the exit status."""
        await self._stopped.wait()
        assert self._exit_status is not None
        return self._exit_status

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_loop_exception(
        self,
        loop: asyncio.AbstractEventLoop,  # pylint: disable=unused-argument
        context: dict[str, Any],
    ) -> None:
        exc = context.get("exception")
        if not isinstance(exc, Exception):
            # Resource warnings and the like: report, do not escalate
            log_event({
                "event_type": "LOOP_WARNING",
                "message": context.get("message"),
            })
            return

        log_event({
            "event_type": "FATAL_FAULT",
            "message": context.get("message"),
            "exception": type(exc).__name__,
            "detail": str(exc),
        })

        if "task" in context or "future" in context:
            self.trigger(ShutdownReason.UNHANDLED_TASK_ERROR)
        else:
            self.trigger(ShutdownReason.FATAL_FAULT)

    async def _run_step(self, name: str, step: StepFn) -> None:
        try:
            result = step()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SHUTDOWN_STEP_FAILED",
                "step": name,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

    def _stop_heartbeat(self) -> None:
        if self._heartbeat is not None:
            self._heartbeat.stop()

    async def _close_sessions(self) -> None:
        sessions = self._registry.snapshot()
        for session in sessions:
            await self._run_step(f"session:{session.session_id}", session.close)
        self._registry.clear()

    async def _close_inbound(self) -> None:
        if self._close_listener is None:
            return
        result = self._close_listener()
        if inspect.isawaitable(result):
            await result

    def _close_outbound(self) -> None:
        self._outbound.close()

    async def _teardown(self) -> None:
        await self._run_step("heartbeat", self._stop_heartbeat)
        await self._run_step("sessions", self._close_sessions)
        await self._run_step("listener", self._close_inbound)
        await self._run_step("outbound", self._close_outbound)

        # Let in-flight close frames flush
        await asyncio.sleep(self._grace_s)

        self._state = LifecycleState.STOPPED
        log_event({
            "event_type": "SHUTDOWN_COMPLETE",
            "reason": self._reason.value if self._reason else None,
            "exit_status": self._exit_status,
        })
        self._stopped.set()

        if self._exit_fn is not None:
            assert self._exit_status is not None
            self._exit_fn(self._exit_status)

"""
Shutdown coordinator tests.

Guarantees:
- Teardown runs exactly once whatever the number of triggers
- Steps run in order: heartbeat, sessions, listener, outbound
- A failing step does not block the remaining ones
- Faults exit non-zero, signals exit zero
"""

import asyncio
import os
import signal
import sys
from typing import Any

import pytest

import orchestrator.lifecycle as lifecycle_mod
from orchestrator.enums.lifecycle_state import LifecycleState
from orchestrator.enums.shutdown_reason import ShutdownReason
from orchestrator.lifecycle import LifecycleCoordinator, exit_status_for
from session.bridge_session import BridgeSession
from session.registry import SessionRegistry


class Recorder:
    def __init__(self) -> None:
        self.calls: list[str] = []


class FakeHeartbeat:
    def __init__(self, rec: Recorder, *, fail: bool = False) -> None:
        self._rec = rec
        self._fail = fail

    def stop(self) -> None:
        self._rec.calls.append("heartbeat")
        if self._fail:
            raise RuntimeError("timer already gone")


class FakeConnection:
    def __init__(self, rec: Recorder, name: str, *, fail: bool = False) -> None:
        self._rec = rec
        self._name = name
        self._fail = fail

    async def close(self, code: int = 1000) -> None:
        self._rec.calls.append(f"close:{self._name}:{code}")
        if self._fail:
            raise ConnectionResetError("peer vanished")


class FakeOutbound:
    def __init__(self, rec: Recorder) -> None:
        self._rec = rec

    def close(self) -> None:
        self._rec.calls.append("outbound")


@pytest.fixture
def events(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(lifecycle_mod, "log_event", emitted.append)
    return emitted


def build(rec: Recorder, *, heartbeat_fails: bool = False, failing_session: bool = False):
    registry = SessionRegistry()
    registry.register(BridgeSession(connection=FakeConnection(rec, "a", fail=failing_session)))
    registry.register(BridgeSession(connection=FakeConnection(rec, "b")))

    exits: list[int] = []
    coordinator = LifecycleCoordinator(
        registry=registry,
        outbound=FakeOutbound(rec),
        grace_s=0,
        exit_fn=exits.append,
    )
    coordinator.attach_heartbeat(FakeHeartbeat(rec, fail=heartbeat_fails))

    async def close_listener() -> None:
        rec.calls.append("listener")

    coordinator.attach_listener(close_listener)
    return coordinator, registry, exits


def test_teardown_order(events):
    rec = Recorder()
    coordinator, registry, exits = build(rec)

    async def scenario() -> int:
        assert coordinator.trigger(ShutdownReason.SIGINT) is True
        return await coordinator.wait_stopped()

    status = asyncio.run(scenario())

    assert rec.calls == ["heartbeat", "close:a:1001", "close:b:1001", "listener", "outbound"]
    assert len(registry) == 0
    assert status == 0
    assert exits == [0]
    assert coordinator.state is LifecycleState.STOPPED


def test_second_trigger_is_a_noop(events):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    async def scenario() -> None:
        assert coordinator.trigger(ShutdownReason.SIGINT) is True
        assert coordinator.trigger(ShutdownReason.SIGTERM) is False
        assert coordinator.state is LifecycleState.SHUTTING_DOWN
        await coordinator.wait_stopped()
        assert coordinator.trigger(ShutdownReason.FATAL_FAULT) is False

    asyncio.run(scenario())

    assert rec.calls.count("outbound") == 1
    assert rec.calls.count("heartbeat") == 1
    assert exits == [0]
    assert coordinator.reason is ShutdownReason.SIGINT
    assert [e["event_type"] for e in events].count("SHUTDOWN_BEGIN") == 1


def test_concurrent_triggers_from_callbacks(events):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        loop.call_soon(coordinator.trigger, ShutdownReason.SIGTERM)
        loop.call_soon(coordinator.trigger, ShutdownReason.SIGINT)
        loop.call_soon(coordinator.trigger, ShutdownReason.SIGTERM)
        await asyncio.sleep(0)
        await coordinator.wait_stopped()

    asyncio.run(scenario())

    assert exits == [0]
    assert rec.calls.count("listener") == 1


def test_failing_steps_do_not_block_the_rest(events):
    rec = Recorder()
    coordinator, registry, exits = build(rec, heartbeat_fails=True, failing_session=True)

    async def scenario() -> None:
        coordinator.trigger(ShutdownReason.SIGTERM)
        await coordinator.wait_stopped()

    asyncio.run(scenario())

    assert rec.calls == ["heartbeat", "close:a:1001", "close:b:1001", "listener", "outbound"]
    failed = [e["step"] for e in events if e["event_type"] == "SHUTDOWN_STEP_FAILED"]
    assert failed[0] == "heartbeat"
    assert failed[1].startswith("session:")
    assert len(registry) == 0
    assert exits == [0]


def test_fault_shutdown_exits_non_zero(events):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    async def scenario() -> int:
        coordinator.fail(RuntimeError("boom"))
        return await coordinator.wait_stopped()

    assert asyncio.run(scenario()) == 1
    assert exits == [1]
    assert events[0]["event_type"] == "FATAL_FAULT"


@pytest.mark.parametrize(
    "reason, status",
    [
        (ShutdownReason.SIGINT, 0),
        (ShutdownReason.SIGTERM, 0),
        (ShutdownReason.LISTENER_EXITED, 0),
        (ShutdownReason.FATAL_FAULT, 1),
        (ShutdownReason.UNHANDLED_TASK_ERROR, 1),
    ],
)
def test_exit_status_for(reason, status):
    assert exit_status_for(reason) == status


def test_loop_exception_handler_escalates_task_errors(events):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        coordinator.install(loop)
        loop.call_exception_handler({
            "message": "Task exception was never retrieved",
            "exception": ValueError("lost"),
            "future": None,
        })
        await coordinator.wait_stopped()

    asyncio.run(scenario())

    assert coordinator.reason is ShutdownReason.UNHANDLED_TASK_ERROR
    assert exits == [1]


def test_loop_warning_without_exception_does_not_shut_down(events):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        coordinator.install(loop)
        loop.call_exception_handler({"message": "unclosed transport"})
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert coordinator.state is LifecycleState.RUNNING
    assert exits == []
    assert events[-1]["event_type"] == "LOOP_WARNING"


def test_works_without_heartbeat_or_listener(events):
    registry = SessionRegistry()
    rec = Recorder()
    coordinator = LifecycleCoordinator(registry=registry, outbound=FakeOutbound(rec), grace_s=0)

    async def scenario() -> int:
        coordinator.trigger(ShutdownReason.SIGINT)
        return await coordinator.wait_stopped()

    assert asyncio.run(scenario()) == 0
    assert rec.calls == ["outbound"]


# ---------------------------------------------------------------------
# Real signal delivery
# ---------------------------------------------------------------------

@pytest.fixture
def restore_signal_handlers():
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_repeated_sigterm_tears_down_once(events, restore_signal_handlers):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    async def scenario() -> int:
        coordinator.install(asyncio.get_running_loop())
        os.kill(os.getpid(), signal.SIGTERM)
        os.kill(os.getpid(), signal.SIGTERM)
        return await asyncio.wait_for(coordinator.wait_stopped(), timeout=5)

    assert asyncio.run(scenario()) == 0

    assert exits == [0]
    assert coordinator.reason is ShutdownReason.SIGTERM
    assert rec.calls.count("outbound") == 1
    assert rec.calls.count("listener") == 1
    assert [e["event_type"] for e in events].count("SHUTDOWN_BEGIN") == 1


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_signal_module_fallback_routes_into_trigger(events, restore_signal_handlers):
    rec = Recorder()
    coordinator, _, exits = build(rec)

    def unsupported(*_args: Any) -> None:
        raise NotImplementedError

    async def scenario() -> int:
        loop = asyncio.get_running_loop()
        loop.add_signal_handler = unsupported  # type: ignore[method-assign]
        coordinator.install(loop)
        os.kill(os.getpid(), signal.SIGINT)
        os.kill(os.getpid(), signal.SIGINT)
        return await asyncio.wait_for(coordinator.wait_stopped(), timeout=5)

    assert asyncio.run(scenario()) == 0

    assert exits == [0]
    assert coordinator.reason is ShutdownReason.SIGINT
    assert rec.calls.count("outbound") == 1

"""
Bridge process entry point.

Boot order:
1. Load .env and AppConfig
2. Build the app and its components
3. Install signal / loop-exception routing into the LifecycleCoordinator
4. Open the outbound OSC socket, start the heartbeat
5. Serve WebSocket connections until the coordinator stops the listener

The exit status comes from the coordinator.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from typing import Iterator

import uvicorn
from dotenv import load_dotenv

from config import AppConfig
from constants import INBOUND_MAX_MESSAGE_BYTES
from observability.logger import log_event
from orchestrator.enums.shutdown_reason import ShutdownReason
from orchestrator.heartbeat import HeartbeatMonitor
from orchestrator.lifecycle import LifecycleCoordinator

from server.app import create_app


class BridgeServer(uvicorn.Server):
    """
    uvicorn server that leaves SIGINT/SIGTERM to the LifecycleCoordinator.
    """

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


async def run_bridge(config: AppConfig) -> int:
    """Run until shutdown; returns the process exit status."""
    app = create_app(config)
    lifecycle: LifecycleCoordinator = app.state.lifecycle
    outbound = app.state.outbound

    lifecycle.install(asyncio.get_running_loop())

    server = BridgeServer(
        uvicorn.Config(
            app,
            host=config.ws_host,
            port=config.ws_port,
            log_level=config.log_level,
            ws_max_size=INBOUND_MAX_MESSAGE_BYTES,
            lifespan="off",
        )
    )

    def _close_listener() -> None:
        server.should_exit = True

    lifecycle.attach_listener(_close_listener)

    try:
        await outbound.open()

        heartbeat = HeartbeatMonitor(
            registry=app.state.registry,
            interval_s=config.heartbeat_ms / 1000.0,
            outbound=outbound,
        )
        lifecycle.attach_heartbeat(heartbeat)
        heartbeat.start()

        log_event({
            "event_type": "WS_LISTENING",
            "url": f"ws://{config.ws_host}:{config.ws_port}",
            "osc_remote": f"{config.osc_host}:{config.osc_port}",
            "heartbeat_ms": config.heartbeat_ms,
        })

        await server.serve()

    except (Exception, SystemExit) as exc:  # pylint: disable=broad-exception-caught
        # uvicorn reports bind failures with sys.exit(1)
        lifecycle.fail(exc)

    else:
        # No-op when the coordinator stopped the listener itself
        lifecycle.trigger(ShutdownReason.LISTENER_EXITED)

    return await lifecycle.wait_stopped()


def main() -> None:
    load_dotenv()
    config = AppConfig.load_from_env()
    sys.exit(asyncio.run(run_bridge(config)))


if __name__ == "__main__":
    main()

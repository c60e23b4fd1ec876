"""
FastAPI app factory.

Responsibilities:
- Create the FastAPI app
- Build the shared components (registry, outbound adapter, coordinator)
  and expose them on app.state
- Register routes
"""

from __future__ import annotations

from fastapi import FastAPI

from adapters.osc.udp_adapter import OscUdpAdapter
from config import AppConfig
from orchestrator.lifecycle import LifecycleCoordinator
from session.registry import SessionRegistry

from server.routes import register_routes


def create_app(
    config: AppConfig | None = None,
    *,
    outbound: object | None = None,
    registry: SessionRegistry | None = None,
    lifecycle: LifecycleCoordinator | None = None,
) -> FastAPI:
    """
    Create and configure the bridge application.

    The factory allows:
    - Testing with a fake outbound adapter
    - Running the same app under the bridge runner or any ASGI server

    Component construction order matters: the coordinator owns the
    registry and the outbound adapter it will tear down.
    """
    config = config or AppConfig.load_from_env()

    if registry is None:
        registry = SessionRegistry()
    if outbound is None:
        outbound = OscUdpAdapter(host=config.osc_host, port=config.osc_port)
    if lifecycle is None:
        lifecycle = LifecycleCoordinator(
            registry=registry,
            outbound=outbound,
            grace_s=config.shutdown_grace_ms / 1000.0,
        )

    app = FastAPI(title="Feature OSC Bridge")

    app.state.config = config
    app.state.registry = registry
    app.state.outbound = outbound
    app.state.lifecycle = lifecycle

    register_routes(app)

    return app

"""
Route registration for the bridge.

Responsibilities:
- Define the health endpoint and the feature WebSocket endpoint
- Wire one FrameGateway to each WebSocket lifecycle
- Pull shared components from app.state
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from constants import WS_CLOSE_GOING_AWAY
from observability.logger import log_event
from orchestrator.enums.lifecycle_state import LifecycleState
from orchestrator.lifecycle import LifecycleCoordinator
from session.gateway import FrameGateway


def _remote(ws: WebSocket) -> str | None:
    client = ws.client
    if client is None:
        return None
    return f"{client.host}:{client.port}"


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        lifecycle: LifecycleCoordinator = app.state.lifecycle
        status = "ok" if lifecycle.state is LifecycleState.RUNNING else lifecycle.state.value.lower()
        return {
            "status": status,
            "ws_clients": app.state.registry.live_sessions(),
        }

    # Producers connect to ws://host:port with no path
    @app.websocket("/")
    async def feature_stream(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        lifecycle: LifecycleCoordinator = app.state.lifecycle
        if not lifecycle.accepting_frames:
            await ws.close(code=WS_CLOSE_GOING_AWAY)
            return

        await ws.accept()

        gateway = FrameGateway(
            registry=app.state.registry,
            outbound=app.state.outbound,
            lifecycle=lifecycle,
            connection=ws,
            remote=_remote(ws),
        )
        gateway.on_ws_connect()

        try:
            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(code=msg.get("code", 1000))

                if msg.get("text") is not None:
                    gateway.on_message(msg["text"])

                elif msg.get("bytes") is not None:
                    gateway.on_message(msg["bytes"])

        except WebSocketDisconnect:
            gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Transient session error: log, drop this session, keep serving
            if gateway.session.is_open:
                log_event({
                    "event_type": "WS_SESSION_ERROR",
                    **gateway.session.log_context(),
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
            gateway.on_ws_disconnect(reason="server_error")

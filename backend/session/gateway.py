"""
Frame gateway.

Responsibilities:
- Owns one BridgeSession per WebSocket connection
- Registers/unregisters it with the SessionRegistry
- Runs the synchronous decode -> map -> emit pipeline per inbound message
- Applies the error policy: malformed input is dropped and counted,
  transient send outcomes are counted and ignored

NOT responsible for:
- Socket I/O (server.routes)
- Process shutdown (orchestrator.lifecycle)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, TYPE_CHECKING

from adapters.osc.udp_adapter import EmitResult
from mapping.field_mapper import map_frame
from protocol.frame_codec import RejectReason, Rejected, decode_frame
from session.bridge_session import BridgeSession
from session.registry import SessionRegistry

from observability.logger import log_event

if TYPE_CHECKING:
    from orchestrator.lifecycle import LifecycleCoordinator


class OutboundSink(Protocol):
    def emit(self, address: str, value: Any) -> EmitResult: ...


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Outcome of one inbound message.

    processed:
        True if the message was decoded and mapped.

    rejected:
        Why the message was dropped before mapping, if it was.

    sent / not_sent:
        Outbound emissions by outcome. A partially-sent frame is normal.
    """
    processed: bool = False
    rejected: RejectReason | None = None
    sent: int = 0
    not_sent: int = 0


_DROPPED_LATE = GatewayResult()


# ------------------------------------------------------------------
# FrameGateway
# ------------------------------------------------------------------

class FrameGateway:
    """
    One gateway == one inbound connection.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        outbound: OutboundSink,
        lifecycle: LifecycleCoordinator,
        connection: Any = None,
        remote: str | None = None,
    ) -> None:
        self._registry = registry
        self._outbound = outbound
        self._lifecycle = lifecycle
        self.session = BridgeSession(connection=connection, remote=remote)

    def on_ws_connect(self) -> BridgeSession:
        """Called once the WebSocket has been accepted."""
        self._registry.register(self.session)

        log_event({
            "event_type": "WS_CLIENT_CONNECTED",
            **self.session.log_context(),
            "ws_clients": self._registry.live_sessions(),
        })
        return self.session

    def on_message(self, payload: str | bytes) -> GatewayResult:
        """
        Run one inbound message through the pipeline.

        No suspension points: messages of one session are fully emitted
        in arrival order.
        """
        if not self._lifecycle.accepting_frames:
            return _DROPPED_LATE

        decoded = decode_frame(payload)
        if isinstance(decoded, Rejected):
            # Malformed input: dropped without acknowledgement or log line
            self.session.frames_rejected += 1
            return GatewayResult(rejected=decoded.reason)

        self.session.frames_in += 1

        sent = 0
        not_sent = 0
        for message in map_frame(decoded):
            result = self._outbound.emit(message.address, message.value)
            if result is EmitResult.SENT:
                sent += 1
            else:
                # NOT_READY / CLOSED / SEND_FAILED are all transient here
                not_sent += 1

        return GatewayResult(processed=True, sent=sent, not_sent=not_sent)

    def on_ws_disconnect(self, reason: str | None = None) -> None:
        """Called when the connection ends, for any reason. Idempotent."""
        self.session.mark_closed()
        if not self._registry.unregister(self.session):
            return

        log_event({
            "event_type": "WS_CLIENT_DISCONNECTED",
            **self.session.log_context(),
            "reason": reason,
            "frames_in": self.session.frames_in,
            "frames_rejected": self.session.frames_rejected,
            "ws_clients": self._registry.live_sessions(),
        })

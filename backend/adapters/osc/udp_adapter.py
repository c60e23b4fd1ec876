"""
OSC-over-UDP outbound adapter.

Role in the system:
- Owns the single outbound datagram transport for the process.
- Encodes one (address, value) pair into one OSC message and sends it.
- Reports every outcome as an EmitResult; never raises into the caller.

Architectural constraints:
- No batching, no bundles: one pair == one datagram.
- No retries. UDP gives no delivery or ordering guarantee and the bridge
  does not compensate.
- Destination host/port are fixed at construction.
"""

from __future__ import annotations

import asyncio
import math
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pythonosc.osc_message_builder import BuildError, OscMessageBuilder

from constants import OSC_FLOAT32_MAX, OSC_LOCAL_BIND_HOST, OSC_LOCAL_BIND_PORT
from observability.logger import log_event


class EmitResult(str, Enum):
    """
    Outcome of a single emit() call.

    Everything except SENT is a transient, locally-recovered condition.
    """
    SENT = "sent"
    NOT_READY = "not_ready"
    CLOSED = "closed"
    SEND_FAILED = "send_failed"


@dataclass
class EmitCounters:
    """
    Outbound counters for observability.
    """
    sent: int = 0
    failed: int = 0


# ------------------------------------------------------------------
# Wire typing
# ------------------------------------------------------------------

def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
    return str(value)


def to_osc_arg(value: Any) -> tuple[str, Any]:
    """
    Coerce a host value to exactly one OSC wire type.

    bool          -> ("i", 0/1)
    int           -> ("i", value)   integer-flag wire type
    finite float  -> ("f", value)   when it fits in float32
    anything else -> ("s", stringified)
    """
    if isinstance(value, bool):
        return OscMessageBuilder.ARG_TYPE_INT, 1 if value else 0
    if isinstance(value, int):
        return OscMessageBuilder.ARG_TYPE_INT, value
    if isinstance(value, float) and math.isfinite(value) and abs(value) <= OSC_FLOAT32_MAX:
        return OscMessageBuilder.ARG_TYPE_FLOAT, value
    return OscMessageBuilder.ARG_TYPE_STRING, _stringify(value)


def encode_message(address: str, value: Any) -> bytes:
    """Build the OSC datagram for one addressed value."""
    builder = OscMessageBuilder(address=address)
    arg_type, arg_value = to_osc_arg(value)
    builder.add_arg(arg_value, arg_type)
    return builder.build().dgram


# ------------------------------------------------------------------
# Transport protocol
# ------------------------------------------------------------------

class _OscDatagramProtocol(asyncio.DatagramProtocol):
    """Receives asynchronous socket errors (e.g. ICMP port unreachable)."""

    def __init__(self, remote: str) -> None:
        self._remote = remote

    def error_received(self, exc: Exception) -> None:
        log_event({
            "event_type": "OSC_ERROR",
            "remote": self._remote,
            "exception": type(exc).__name__,
            "message": str(exc),
        })


# ------------------------------------------------------------------
# Adapter
# ------------------------------------------------------------------

class OscUdpAdapter:
    """
    Best-effort OSC sender bound to one destination.

    Lifecycle:
    1. open()  -> datagram endpoint created, emit() starts sending
    2. emit()  -> one datagram per call
    3. close() -> transport released; further emit() returns CLOSED
    """

    def __init__(self, *, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._transport: asyncio.DatagramTransport | None = None
        self._closed = False
        self._failing = False

        self.counters = EmitCounters()

    @property
    def remote(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def is_open(self) -> bool:
        return self._transport is not None and not self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Create the UDP endpoint. Raises OSError if the socket cannot be made."""
        if self._closed or self._transport is not None:
            return

        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _OscDatagramProtocol(self.remote),
            local_addr=(OSC_LOCAL_BIND_HOST, OSC_LOCAL_BIND_PORT),
            remote_addr=(self._host, self._port),
        )
        self._transport = transport

        log_event({
            "event_type": "OSC_READY",
            "remote": self.remote,
        })

    def close(self) -> None:
        """Release the transport. Idempotent."""
        if self._closed:
            return
        self._closed = True

        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()

        log_event({
            "event_type": "OSC_CLOSED",
            "remote": self.remote,
            "sent": self.counters.sent,
            "failed": self.counters.failed,
        })

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def emit(self, address: str, value: Any) -> EmitResult:
        """
        Encode and send one OSC message.

        Never raises.
        """
        if self._closed:
            return EmitResult.CLOSED

        transport = self._transport
        if transport is None or transport.is_closing():
            return EmitResult.NOT_READY

        try:
            transport.sendto(encode_message(address, value))
        except (OSError, BuildError, ValueError, OverflowError, struct.error) as exc:
            self.counters.failed += 1
            if not self._failing:
                # Log the first failure of a streak only
                self._failing = True
                log_event({
                    "event_type": "OSC_SEND_FAILED",
                    "remote": self.remote,
                    "address": address,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
            return EmitResult.SEND_FAILED

        self._failing = False
        self.counters.sent += 1
        return EmitResult.SENT

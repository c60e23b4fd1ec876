"""
Inbound session container.

- One per accepted WebSocket connection
- Owned by SessionRegistry, mutated by FrameGateway
- Carries NO frame state between messages, only liveness and counters
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import uuid4

from constants import WS_CLOSE_GOING_AWAY
from session.connection_status import ConnectionStatus


class ClosableConnection(Protocol):
    """The part of a WebSocket the session needs for teardown."""

    async def close(self, code: int = ...) -> None: ...


def new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


@dataclass(eq=False)
class BridgeSession:
    """Mutable runtime container for a single inbound connection."""

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    session_id: str = field(default_factory=new_session_id)
    remote: str | None = None
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    connection_status: ConnectionStatus = ConnectionStatus.OPEN
    connection: ClosableConnection | None = None

    # ------------------------------------------------------------------
    # Counters (observability only)
    # ------------------------------------------------------------------

    frames_in: int = 0
    frames_rejected: int = 0

    @property
    def is_open(self) -> bool:
        return self.connection_status is ConnectionStatus.OPEN

    def mark_closed(self) -> None:
        self.connection_status = ConnectionStatus.CLOSED

    async def close(self, code: int = WS_CLOSE_GOING_AWAY) -> None:
        """
        Close the underlying connection. Idempotent.

        The status flips to CLOSED before the socket call so a failing
        close still leaves the session dead.
        """
        if not self.is_open:
            return
        self.mark_closed()
        if self.connection is not None:
            await self.connection.close(code=code)

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        return {
            "session_id": self.session_id,
            "remote": self.remote,
            "connection_status": self.connection_status.value,
        }

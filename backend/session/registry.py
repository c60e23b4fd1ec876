"""
Registry of live inbound sessions.

Used for the heartbeat count, the health endpoint and coordinated
teardown. It never gates frame processing. Mutated only from the event
loop thread, so no locking.
"""

from __future__ import annotations

from session.bridge_session import BridgeSession


class SessionRegistry:
    """Set of sessions keyed by session_id, in registration order."""

    def __init__(self) -> None:
        self._sessions: dict[str, BridgeSession] = {}

    def register(self, session: BridgeSession) -> None:
        self._sessions[session.session_id] = session

    def unregister(self, session: BridgeSession) -> bool:
        """
        Remove a session.

        Idempotent: returns False if it was never registered or is
        already gone.
        """
        return self._sessions.pop(session.session_id, None) is not None

    def live_sessions(self) -> int:
        """Point-in-time count of registered sessions that are still open."""
        return sum(1 for s in self._sessions.values() if s.is_open)

    def snapshot(self) -> tuple[BridgeSession, ...]:
        """Stable copy for iteration while sessions unregister themselves."""
        return tuple(self._sessions.values())

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return (
            isinstance(session, BridgeSession)
            and self._sessions.get(session.session_id) is session
        )

"""
Application configuration.

Responsibilities:
- Read environment variables once at startup
- Provide a typed, immutable config object

Non-responsibilities:
- No bridge logic
- No protocol constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from constants import (
    DEFAULT_HEARTBEAT_MS,
    DEFAULT_OSC_HOST,
    DEFAULT_OSC_PORT,
    DEFAULT_SHUTDOWN_GRACE_MS,
    DEFAULT_WS_HOST,
    DEFAULT_WS_PORT,
)


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw, 10)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable bridge configuration.

    Constructed once at process startup and passed downward to the
    app factory and the runner.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Inbound WebSocket listener
    # ------------------------------------------------------------------

    ws_host: str
    ws_port: int

    # ------------------------------------------------------------------
    # Outbound OSC destination (fixed for the process lifetime)
    # ------------------------------------------------------------------

    osc_host: str
    osc_port: int

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    heartbeat_ms: int
    shutdown_grace_ms: int

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env(environ: Mapping[str, str] | None = None) -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is malformed or not positive.
        """
        env = os.environ if environ is None else environ

        return AppConfig(
            env=env.get("ENV", "dev"),
            log_level=env.get("LOG_LEVEL", "info").lower(),

            ws_host=env.get("WS_HOST", DEFAULT_WS_HOST),
            ws_port=_positive_int(env, "WS_PORT", DEFAULT_WS_PORT),

            osc_host=env.get("OSC_HOST", DEFAULT_OSC_HOST),
            osc_port=_positive_int(env, "OSC_PORT", DEFAULT_OSC_PORT),

            heartbeat_ms=_positive_int(env, "BRIDGE_HEARTBEAT_MS", DEFAULT_HEARTBEAT_MS),
            shutdown_grace_ms=_positive_int(
                env, "BRIDGE_SHUTDOWN_GRACE_MS", DEFAULT_SHUTDOWN_GRACE_MS
            ),
        )

"""
BRIDGE CONSTANTS
----------------
Single source of truth for all behavioral invariants of the bridge.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Inbound envelope (WebSocket, UTF-8 JSON)
# =============================================================================

FRAME_KIND_FEATURES: Final[str] = "features"
ENVELOPE_KIND_KEY: Final[str] = "type"
ENVELOPE_PAYLOAD_KEY: Final[str] = "payload"

# uvicorn rejects larger messages before they reach the codec
INBOUND_MAX_MESSAGE_BYTES: Final[int] = 1 << 20

# =============================================================================
# Outbound OSC namespace
# =============================================================================

OSC_ADDRESS_ROOT: Final[str] = "/reactive"

# Array expansion caps (indices >= cap are never emitted)
MFCC_CAP: Final[int] = 13
CHROMA_CAP: Final[int] = 12

# Largest magnitude an OSC "f" (float32) argument can carry
OSC_FLOAT32_MAX: Final[float] = 3.4028234663852886e38

# Local bind for the outbound UDP socket (ephemeral port)
OSC_LOCAL_BIND_HOST: Final[str] = "0.0.0.0"
OSC_LOCAL_BIND_PORT: Final[int] = 0

# =============================================================================
# Defaults for the process configuration surface
# =============================================================================

DEFAULT_WS_HOST: Final[str] = "127.0.0.1"
DEFAULT_WS_PORT: Final[int] = 8090
DEFAULT_OSC_HOST: Final[str] = "127.0.0.1"
DEFAULT_OSC_PORT: Final[int] = 9000
DEFAULT_HEARTBEAT_MS: Final[int] = 5000
DEFAULT_SHUTDOWN_GRACE_MS: Final[int] = 250

# =============================================================================
# Shutdown
# =============================================================================

# RFC 6455 "going away"
WS_CLOSE_GOING_AWAY: Final[int] = 1001

CLEAN_EXIT_STATUS: Final[int] = 0
FAULT_EXIT_STATUS: Final[int] = 1

"""
Liveness state of one inbound connection.

Pure data owned by BridgeSession; the registry only counts OPEN sessions.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Connection liveness.

    Independent of the process lifecycle state: sessions may still be OPEN
    while the coordinator is shutting down, until step (b) closes them.
    """
    OPEN = "OPEN"      # Accepted WebSocket, may submit frames
    CLOSED = "CLOSED"  # Disconnected or closed by the bridge

"""
MC protocol (3E frame) TCP client.

Usage:
    from mcprotocol import new_3e_alive_client

    client = new_3e_alive_client("192.168.3.39", 5000, station)
    client.health_check()
    data = client.read("D", 100, 10)
    client.close()

The station object builds hex-encoded request frames; see
mcprotocol.station.Station for the interface it must provide.
"""

from mcprotocol.client import (
    MCClient,
    client_from_config,
    new_3e_alive_client,
    new_3e_client,
)
from mcprotocol.config_loader import ConfigLoader
from mcprotocol.connection import (
    ALIVE,
    EXPLICIT,
    Connection,
    ConnectionManager,
    ConnectionState,
    LifecyclePolicy,
)
from mcprotocol.errors import (
    FrameEncodingError,
    MCProtocolError,
    PLCConnectionError,
    PLCIOError,
    ProtocolLengthError,
    ValidationError,
)
from mcprotocol.logging_system import configure_logging, get_logger
from mcprotocol.station import Station

__all__ = [
    "MCClient",
    "new_3e_alive_client",
    "new_3e_client",
    "client_from_config",
    "ConfigLoader",
    "ALIVE",
    "EXPLICIT",
    "Connection",
    "ConnectionManager",
    "ConnectionState",
    "LifecyclePolicy",
    "Station",
    "MCProtocolError",
    "PLCConnectionError",
    "FrameEncodingError",
    "PLCIOError",
    "ValidationError",
    "ProtocolLengthError",
    "configure_logging",
    "get_logger",
]

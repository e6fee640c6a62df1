# mcprotocol/client.py
"""
MC protocol 3E frame client.

Each operation asks the station for a hex frame, decodes it, borrows the
connection for one write and one read, and returns the bytes read.

Example:
    >>> client = new_3e_alive_client("192.168.3.39", 5000, station)
    >>> client.health_check()
    >>> data = client.read("D", 100, 10)
    >>> client.close()

The alive client serialises whole requests, so it can be shared between
threads with one request in flight at a time. The explicit client has no
locking and is meant for sequential use from one thread.
"""

import threading
from contextlib import nullcontext
from typing import Any

from mcprotocol.connection import (
    ALIVE,
    EXPLICIT,
    ConnectionManager,
    ConnectionState,
    LifecyclePolicy,
    resolve_address,
)
from mcprotocol.errors import PLCIOError, ValidationError
from mcprotocol.logging_system import EventCategory, EventSeverity, get_logger
from mcprotocol.response import (
    HEALTH_CHECK_BUFFER_SIZE,
    WRITE_RESPONSE_SIZE,
    decode_frame,
    read_buffer_size,
    validate_health_check,
)
from mcprotocol.station import Station

__all__ = [
    "MCClient",
    "new_3e_alive_client",
    "new_3e_client",
    "client_from_config",
]

POLICIES = {
    ALIVE.name: ALIVE,
    EXPLICIT.name: EXPLICIT,
}


class MCClient:
    """
    Client for one PLC endpoint.

    Use new_3e_alive_client() or new_3e_client() to build one.
    """

    def __init__(
        self,
        station: Station,
        manager: ConnectionManager,
    ):
        if not isinstance(station, Station):
            raise TypeError(
                f"station must provide the Station interface, got {type(station)!r}"
            )

        self.station = station
        self.manager = manager
        self.logger = manager.logger
        self._request_lock = (
            threading.Lock() if manager.policy.locked else nullcontext()
        )

    @property
    def address(self) -> tuple[str, int]:
        return self.manager.address

    @property
    def variant(self) -> str:
        return self.manager.policy.name

    @property
    def connected(self) -> bool:
        return self.manager.state is ConnectionState.LIVE

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    def connect(self) -> None:
        """Dial the PLC now.

        Raises:
            PLCConnectionError: If the dial fails
        """
        with self._request_lock:
            self.manager.connect()

    def close(self) -> None:
        """Close the connection if open.

        Raises:
            PLCIOError: If closing the socket fails
        """
        with self._request_lock:
            self.manager.close()

    def __enter__(self) -> "MCClient":
        if not self.manager.policy.auto_connect:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
            return

        # Keep the body's exception; a close failure here is secondary.
        try:
            self.close()
        except PLCIOError as e:
            self.logger.debug(f"Close after {exc_type.__name__} failed: {e}")

    # ----------------------------------------------------------------
    # Operations
    # ----------------------------------------------------------------

    def health_check(self) -> None:
        """Run the loopback self-test against the PLC.

        Raises:
            FrameEncodingError: If the station frame is not valid hex
            PLCConnectionError: If the PLC cannot be reached
            PLCIOError: If the write or read fails
            ValidationError: If the response is not the expected echo
        """
        frame = self.station.build_health_check_request()
        resp = self._exchange(frame, HEALTH_CHECK_BUFFER_SIZE)

        try:
            validate_health_check(resp)
        except ValidationError as e:
            self.logger.log_event(
                EventSeverity.WARNING,
                EventCategory.DIAGNOSTIC,
                str(e),
                component="health_check",
                data={"field": e.field, "received": resp.hex()},
            )
            raise

    def read(self, device_name: str, offset: int, num_points: int) -> bytes:
        """Read num_points words starting at device_name offset.

        Returns:
            The bytes of one socket read, at most 22 + 2 * num_points long
        """
        _check_range(offset, num_points)
        frame = self.station.build_read_request(device_name, offset, num_points)
        return self._exchange(frame, read_buffer_size(num_points))

    def bit_read(self, device_name: str, offset: int, num_points: int) -> bytes:
        """Read num_points bit devices starting at device_name offset.

        The response buffer uses the same word sizing as read().

        Returns:
            The bytes of one socket read, at most 22 + 2 * num_points long
        """
        _check_range(offset, num_points)
        frame = self.station.build_bit_read_request(device_name, offset, num_points)
        return self._exchange(frame, read_buffer_size(num_points))

    def write(
        self, device_name: str, offset: int, num_points: int, data: bytes
    ) -> bytes:
        """Write data to num_points devices starting at device_name offset.

        Returns:
            The acknowledgement bytes, at most 22 long
        """
        _check_range(offset, num_points)
        frame = self.station.build_write_request(
            device_name, offset, num_points, data
        )
        return self._exchange(frame, WRITE_RESPONSE_SIZE)

    # ----------------------------------------------------------------
    # Request/response
    # ----------------------------------------------------------------

    def _exchange(self, frame: str, buffer_size: int) -> bytes:
        payload = decode_frame(frame)

        with self._request_lock:
            conn = self.manager.acquire()
            try:
                conn.write(payload)
                resp = conn.read(buffer_size)
            except PLCIOError as e:
                self.manager.release_on_failure(e)
                raise

        self.logger.debug(
            f"TX {len(payload)} bytes, RX {len(resp)}/{buffer_size} bytes"
        )
        return resp

    def __repr__(self) -> str:
        host, port = self.address
        return f"<MCClient {self.variant} {host}:{port} {self.manager.state.value}>"


def _check_range(offset: int, num_points: int) -> None:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if num_points < 0:
        raise ValueError(f"num_points must be >= 0, got {num_points}")


# ----------------------------------------------------------------
# Factories
# ----------------------------------------------------------------


def _new_client(
    host: str,
    port: int,
    station: Station,
    policy: LifecyclePolicy,
    timeout: float | None,
) -> MCClient:
    address = resolve_address(host, port)
    logger = get_logger(__name__, device=f"{host}:{port}")
    manager = ConnectionManager(address, policy=policy, timeout=timeout, logger=logger)
    return MCClient(station, manager)


def new_3e_alive_client(
    host: str, port: int, station: Station, timeout: float | None = None
) -> MCClient:
    """Create a client that keeps its connection alive and redials on failure.

    The address is resolved immediately; the first dial happens on the
    first operation.

    Raises:
        PLCConnectionError: If host cannot be resolved
    """
    return _new_client(host, port, station, ALIVE, timeout)


def new_3e_client(
    host: str, port: int, station: Station, timeout: float | None = None
) -> MCClient:
    """Create a client whose connection is managed by the caller.

    Call connect() before any operation and close() when done.

    Raises:
        PLCConnectionError: If host cannot be resolved
    """
    return _new_client(host, port, station, EXPLICIT, timeout)


def client_from_config(entry: dict[str, Any], station: Station) -> MCClient:
    """Build a client from a PLC entry loaded by ConfigLoader."""
    variant = entry.get("variant", ALIVE.name)
    if variant not in POLICIES:
        raise ValueError(
            f"variant must be one of {sorted(POLICIES)}, got {variant!r}"
        )

    return _new_client(
        entry["host"],
        entry["port"],
        station,
        POLICIES[variant],
        entry.get("timeout"),
    )

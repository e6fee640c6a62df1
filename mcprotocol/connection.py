# mcprotocol/connection.py
"""
TCP connection lifecycle for MC 3E clients.

A ConnectionManager owns at most one Connection and hands it to each
request. Its behaviour is set by a LifecyclePolicy:

    ALIVE     dial on demand, probe before reuse, tear down on I/O
              failure so the next call redials; guarded by a lock
    EXPLICIT  caller connects and closes; no probe, no redial, no lock

State per manager is ABSENT (no socket) or LIVE (socket dialed and
assumed usable). Dial and probe are synchronous; there is no visible
intermediate state.

The liveness probe is a zero-length write. It does not reliably detect
a half-closed peer; a dead peer usually surfaces on the next read.
"""

import socket
import threading
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum

from mcprotocol.errors import PLCConnectionError, PLCIOError
from mcprotocol.logging_system import (
    EventCategory,
    EventSeverity,
    PLCLogger,
    get_logger,
)

__all__ = [
    "ConnectionState",
    "LifecyclePolicy",
    "ALIVE",
    "EXPLICIT",
    "Connection",
    "ConnectionManager",
    "resolve_address",
]


class ConnectionState(Enum):
    ABSENT = "absent"
    LIVE = "live"


@dataclass(frozen=True)
class LifecyclePolicy:
    """How a ConnectionManager acquires, reuses and discards its socket."""

    name: str
    auto_connect: bool  # dial inside acquire() when no connection exists
    probe_on_acquire: bool  # zero-length write before reusing a connection
    teardown_on_failure: bool  # discard the connection after an I/O error
    locked: bool  # serialise lifecycle changes and requests


ALIVE = LifecyclePolicy(
    name="alive",
    auto_connect=True,
    probe_on_acquire=True,
    teardown_on_failure=True,
    locked=True,
)

EXPLICIT = LifecyclePolicy(
    name="explicit",
    auto_connect=False,
    probe_on_acquire=False,
    teardown_on_failure=False,
    locked=False,
)


def resolve_address(host: str, port: int) -> tuple[str, int]:
    """Resolve host and port to a numeric TCP address.

    Raises:
        ValueError: If host is empty or port is out of range
        PLCConnectionError: If the host cannot be resolved
    """
    if not host:
        raise ValueError("host cannot be empty")
    if not (0 < port < 65536):
        raise ValueError(f"port must be 1-65535, got {port}")

    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except OSError as e:
        raise PLCConnectionError(
            f"cannot resolve {host}:{port}: {e}", address=(host, port)
        ) from e

    # Prefer IPv4; PLCs and simulators rarely listen on IPv6.
    inet = [info for info in infos if info[0] == socket.AF_INET]
    sockaddr = (inet or infos)[0][4]
    return sockaddr[0], sockaddr[1]


class Connection:
    """An owned TCP socket plus the address it was dialed from."""

    def __init__(self, sock: socket.socket, address: tuple[str, int]):
        self.sock = sock
        self.address = address

    @classmethod
    def dial(
        cls, address: tuple[str, int], timeout: float | None = None
    ) -> "Connection":
        """Open a TCP connection.

        Raises:
            PLCConnectionError: If the dial fails
        """
        try:
            sock = socket.create_connection(address, timeout=timeout)
        except OSError as e:
            raise PLCConnectionError(
                f"cannot connect to {address[0]}:{address[1]}: {e}",
                address=address,
            ) from e
        return cls(sock, address)

    def probe(self) -> bool:
        """Best-effort liveness check."""
        try:
            self.sock.send(b"")
        except OSError:
            return False
        return True

    def write(self, payload: bytes) -> None:
        try:
            self.sock.sendall(payload)
        except OSError as e:
            raise PLCIOError(f"write to {self.peer} failed: {e}") from e

    def read(self, size: int) -> bytes:
        """Perform one read of at most size bytes.

        A single read may return fewer bytes than requested; the caller
        gets exactly what arrived.

        Raises:
            PLCIOError: On socket error or if the peer closed the stream
        """
        try:
            data = self.sock.recv(size)
        except OSError as e:
            raise PLCIOError(f"read from {self.peer} failed: {e}") from e
        if not data:
            raise PLCIOError(f"connection closed by {self.peer}")
        return data

    def close(self) -> None:
        self.sock.close()

    @property
    def peer(self) -> str:
        return f"{self.address[0]}:{self.address[1]}"


class ConnectionManager:
    """
    Holds the connection for one PLC endpoint.

    Operations borrow the connection returned by acquire() for one
    write/read pair and report failures through release_on_failure().
    """

    def __init__(
        self,
        address: tuple[str, int],
        policy: LifecyclePolicy = ALIVE,
        timeout: float | None = None,
        logger: PLCLogger | None = None,
    ):
        """
        Args:
            address: Resolved (host, port) of the PLC
            policy: Lifecycle policy, ALIVE or EXPLICIT
            timeout: Socket timeout in seconds (None = blocking)
            logger: Logger for lifecycle events
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")

        self.address = address
        self.policy = policy
        self.timeout = timeout
        self.logger = logger or get_logger(
            __name__, device=f"{address[0]}:{address[1]}"
        )

        self._conn: Connection | None = None
        self._lock = threading.Lock() if policy.locked else nullcontext()

    @property
    def state(self) -> ConnectionState:
        if self._conn is None:
            return ConnectionState.ABSENT
        return ConnectionState.LIVE

    @property
    def connection(self) -> Connection | None:
        return self._conn

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    def acquire(self) -> Connection:
        """Return a usable connection.

        Raises:
            PLCConnectionError: If a required dial fails
            RuntimeError: If the policy does not auto-connect and
                connect() has not been called
        """
        with self._lock:
            conn = self._conn
            if conn is not None:
                if not self.policy.probe_on_acquire or conn.probe():
                    return conn
                self.logger.log_event(
                    EventSeverity.WARNING,
                    EventCategory.COMMUNICATION,
                    "Liveness probe failed, redialing",
                    component="connection",
                )
                self._discard()

            if not self.policy.auto_connect:
                raise RuntimeError("Client not connected")

            self._conn = self._dial()
            return self._conn

    def connect(self) -> None:
        """Establish the connection now.

        The explicit policy closes any existing connection and dials a
        new one. Auto-connecting policies acquire eagerly instead.
        """
        if self.policy.auto_connect:
            self.acquire()
            return

        with self._lock:
            self._discard()
            self._conn = self._dial()

    def release_on_failure(self, exc: BaseException) -> None:
        """Discard the stored connection after an I/O failure.

        The next acquire() redials. Policies without teardown keep the
        connection; the caller decides when to reconnect.
        """
        if not self.policy.teardown_on_failure:
            return

        with self._lock:
            if self._conn is None:
                return
            self.logger.log_event(
                EventSeverity.WARNING,
                EventCategory.COMMUNICATION,
                f"I/O failure, discarding connection: {exc}",
                component="connection",
            )
            self._discard()

    def close(self) -> None:
        """Close and discard the connection. Idempotent.

        Raises:
            PLCIOError: If closing the socket fails
        """
        with self._lock:
            conn = self._conn
            if conn is None:
                return
            self._conn = None
            try:
                conn.close()
            except OSError as e:
                raise PLCIOError(f"close of {conn.peer} failed: {e}") from e
            self.logger.info(f"Closed connection to {conn.peer}")

    # ----------------------------------------------------------------
    # Internals (caller holds the lock)
    # ----------------------------------------------------------------

    def _dial(self) -> Connection:
        try:
            conn = Connection.dial(self.address, timeout=self.timeout)
        except PLCConnectionError as e:
            self.logger.log_event(
                EventSeverity.ERROR,
                EventCategory.COMMUNICATION,
                f"Dial failed: {e}",
                component="connection",
            )
            raise

        self.logger.log_event(
            EventSeverity.INFO,
            EventCategory.COMMUNICATION,
            f"Connected ({self.policy.name})",
            component="connection",
        )
        return conn

    def _discard(self) -> None:
        conn = self._conn
        self._conn = None
        if conn is None:
            return
        try:
            conn.close()
        except OSError as e:
            self.logger.debug(f"Ignoring close error on discarded connection: {e}")

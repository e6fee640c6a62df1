# tests/conftest.py
"""Shared pytest fixtures for MC protocol client tests.

Provides a stub station and a threaded loopback TCP server that answers
each request with a scripted response, so client behaviour is tested
against real sockets wherever possible.
"""

import socket
import socketserver
import threading
from contextlib import suppress

import pytest

from mcprotocol import logging_system

# 18 byte loopback echo: 11 header bytes, count 0x0500, "ABCDE"
HEALTH_CHECK_OK = bytes.fromhex("D00000FFFF03000B000000" + "0500" + "4142434445")

HEALTH_CHECK_FRAME = "500000FFFF03000D001000190600000500" + "4142434445"
READ_FRAME = "500000FFFF03000C00100001040000640000A80A00"
BIT_READ_FRAME = "500000FFFF03000C00100001040100000000900800"
WRITE_FRAME = "500000FFFF03000E00100001140000640000A801000100"


# ----------------------------------------------------------------
# Station stub
# ----------------------------------------------------------------
class StubStation:
    """Station returning fixed frames and recording every call."""

    def __init__(
        self,
        health_check_frame: str = HEALTH_CHECK_FRAME,
        read_frame: str = READ_FRAME,
        bit_read_frame: str = BIT_READ_FRAME,
        write_frame: str = WRITE_FRAME,
    ):
        self.health_check_frame = health_check_frame
        self.read_frame = read_frame
        self.bit_read_frame = bit_read_frame
        self.write_frame = write_frame
        self.calls: list[tuple] = []

    def build_health_check_request(self) -> str:
        self.calls.append(("health_check",))
        return self.health_check_frame

    def build_read_request(self, device_name, offset, num_points) -> str:
        self.calls.append(("read", device_name, offset, num_points))
        return self.read_frame

    def build_bit_read_request(self, device_name, offset, num_points) -> str:
        self.calls.append(("bit_read", device_name, offset, num_points))
        return self.bit_read_frame

    def build_write_request(self, device_name, offset, num_points, data) -> str:
        self.calls.append(("write", device_name, offset, num_points, data))
        return self.write_frame


@pytest.fixture
def station():
    """Create a StubStation with valid frames."""
    return StubStation()


@pytest.fixture
def station_factory():
    """Factory for StubStations with custom frames."""
    return StubStation


@pytest.fixture
def health_check_ok() -> bytes:
    """A valid 18 byte health check response."""
    return HEALTH_CHECK_OK


# ----------------------------------------------------------------
# Loopback MC server
# ----------------------------------------------------------------
class _ScriptedHandler(socketserver.BaseRequestHandler):
    def handle(self):
        server = self.server
        with server.lock:
            server.connections.append(self.request)
            server.accepted += 1

        while True:
            try:
                data = self.request.recv(4096)
            except OSError:
                return
            if not data:
                return

            with server.lock:
                server.requests.append(data)
                response = server.responses.pop(0) if server.responses else None

            if response is None:
                response = server.default_response
            if response is MCServer.CLOSE:
                with suppress(OSError):
                    self.request.shutdown(socket.SHUT_RDWR)
                return
            self.request.sendall(response)


class MCServer(socketserver.ThreadingTCPServer):
    """Loopback server answering requests from a response script.

    Each received request pops the next entry of ``responses``; when the
    script is empty ``default_response`` is sent. The CLOSE entry closes
    the connection instead of answering.
    """

    CLOSE = object()
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), _ScriptedHandler)
        self.lock = threading.Lock()
        self.responses: list = []
        self.default_response: bytes = HEALTH_CHECK_OK
        self.requests: list[bytes] = []
        self.connections: list[socket.socket] = []
        self.accepted = 0

    @property
    def port(self) -> int:
        return self.server_address[1]

    def drop_connections(self) -> None:
        """Close every accepted connection from the server side."""
        with self.lock:
            connections = list(self.connections)
            self.connections.clear()
        for conn in connections:
            with suppress(OSError):
                conn.shutdown(socket.SHUT_RDWR)
            with suppress(OSError):
                conn.close()


@pytest.fixture
def mc_server():
    """Run an MCServer on an ephemeral loopback port."""
    server = MCServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield server

    server.shutdown()
    server.drop_connections()
    server.server_close()
    thread.join(timeout=2.0)


@pytest.fixture
def free_port():
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


# ----------------------------------------------------------------
# Logging isolation
# ----------------------------------------------------------------
@pytest.fixture(autouse=True)
def isolated_logging(monkeypatch):
    """Give each test a fresh logger cache and default settings."""
    monkeypatch.setattr(logging_system, "_loggers", {})
    monkeypatch.setattr(logging_system, "_default_log_dir", None)
    monkeypatch.setattr(logging_system, "_default_level", None)
    monkeypatch.setattr(logging_system, "_default_console", False)

# mcprotocol/station.py
"""
Station capability interface.

A station turns a semantic request (device name, offset, point count and
optional payload) into the hex-encoded binary frame of a 3E request. The
client only consumes the frame strings; it never depends on how a station
builds them, so any object with these four methods can be injected.
"""

from typing import Protocol, runtime_checkable

__all__ = ["Station"]


@runtime_checkable
class Station(Protocol):
    """
    Frame builder consumed by MCClient.

    Each method returns an even-length string of hexadecimal digit pairs
    representing the raw request frame.
    """

    def build_health_check_request(self) -> str: ...

    def build_read_request(
        self, device_name: str, offset: int, num_points: int
    ) -> str: ...

    def build_bit_read_request(
        self, device_name: str, offset: int, num_points: int
    ) -> str: ...

    def build_write_request(
        self, device_name: str, offset: int, num_points: int, data: bytes
    ) -> str: ...

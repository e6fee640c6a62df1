# mcprotocol/errors.py
"""
Exception hierarchy for the MC 3E client.

Every error raised by the client derives from MCProtocolError so callers
can catch protocol failures as a group. Network causes are chained with
``raise ... from exc``.
"""

__all__ = [
    "MCProtocolError",
    "PLCConnectionError",
    "FrameEncodingError",
    "PLCIOError",
    "ValidationError",
    "ProtocolLengthError",
]


class MCProtocolError(Exception):
    """Base class for all MC protocol client errors."""


class PLCConnectionError(MCProtocolError):
    """Address resolution or TCP dial failed."""

    def __init__(self, message: str, address: tuple[str, int] | None = None):
        super().__init__(message)
        self.address = address


class FrameEncodingError(MCProtocolError):
    """A frame string returned by the station is not valid hex."""

    def __init__(self, message: str, frame: str = ""):
        super().__init__(message)
        self.frame = frame


class PLCIOError(MCProtocolError):
    """Write or read failed on an established connection."""


class ValidationError(MCProtocolError):
    """A response failed a protocol check.

    Attributes:
        field: Name of the failed check ("length", "header" or "body")
        received: Raw response bytes as read from the socket
    """

    def __init__(self, message: str, field: str, received: bytes):
        super().__init__(message)
        self.field = field
        self.received = received


class ProtocolLengthError(ValidationError):
    """A response did not have the exact expected length."""

    def __init__(self, message: str, received: bytes, expected: int):
        super().__init__(message, field="length", received=received)
        self.expected = expected

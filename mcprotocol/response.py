# mcprotocol/response.py
"""
Frame decoding and response checks for 3E binary exchanges.

Response lengths are fixed or derivable from the request:

    health check   18 bytes exactly (read into a 30 byte buffer)
    read/bit read  22 byte header + 2 bytes per point
    write          22 byte acknowledgement
"""

import binascii

from mcprotocol.errors import FrameEncodingError, ProtocolLengthError, ValidationError

__all__ = [
    "RESPONSE_HEADER_SIZE",
    "WORD_SIZE",
    "HEALTH_CHECK_BUFFER_SIZE",
    "HEALTH_CHECK_RESPONSE_SIZE",
    "HEALTH_CHECK_HEADER",
    "HEALTH_CHECK_BODY",
    "WRITE_RESPONSE_SIZE",
    "decode_frame",
    "format_hex",
    "read_buffer_size",
    "validate_health_check",
]

RESPONSE_HEADER_SIZE = 22
WORD_SIZE = 2

HEALTH_CHECK_BUFFER_SIZE = 30
HEALTH_CHECK_RESPONSE_SIZE = 18

# Loopback data count [2 bytes] at offset 11, loopback data "ABCDE" at 13
HEALTH_CHECK_HEADER = (slice(11, 13), "0500")
HEALTH_CHECK_BODY = (slice(13, 18), "4142434445")

WRITE_RESPONSE_SIZE = RESPONSE_HEADER_SIZE


def format_hex(data: bytes) -> str:
    """Upper-case hex rendering used in diagnostics."""
    return data.hex().upper()


def decode_frame(frame: str) -> bytes:
    """Decode a station frame string into the bytes sent on the wire.

    Args:
        frame: Even-length string of hex digit pairs

    Returns:
        Decoded request payload

    Raises:
        FrameEncodingError: If the string has odd length or non-hex characters
    """
    try:
        return binascii.unhexlify(frame)
    except (binascii.Error, ValueError) as e:
        raise FrameEncodingError(
            f"invalid request frame {frame!r}: {e}", frame=frame
        ) from e


def read_buffer_size(num_points: int) -> int:
    """Response buffer capacity for a read or bit read of num_points.

    Bit reads use the word sizing as well.
    """
    if num_points < 0:
        raise ValueError(f"num_points must be >= 0, got {num_points}")
    return RESPONSE_HEADER_SIZE + WORD_SIZE * num_points


def validate_health_check(resp: bytes) -> None:
    """Check a health check response.

    Raises:
        ProtocolLengthError: If resp is not exactly 18 bytes
        ValidationError: If the loopback header or body do not match
    """
    if len(resp) != HEALTH_CHECK_RESPONSE_SIZE:
        raise ProtocolLengthError(
            f"plc connect test failed: return length is {len(resp)}, "
            f"expected {HEALTH_CHECK_RESPONSE_SIZE} [{format_hex(resp)}]",
            received=resp,
            expected=HEALTH_CHECK_RESPONSE_SIZE,
        )

    for field, (span, expected) in (
        ("header", HEALTH_CHECK_HEADER),
        ("body", HEALTH_CHECK_BODY),
    ):
        actual = format_hex(resp[span])
        if actual != expected:
            raise ValidationError(
                f"plc connect test failed: return {field} is [{actual}], "
                f"expected [{expected}] (response [{format_hex(resp)}])",
                field=field,
                received=resp,
            )

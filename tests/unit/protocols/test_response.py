# tests/unit/protocols/test_response.py
"""Tests for frame decoding and response checks.

Test Coverage:
- Hex frame decoding and rejection of malformed frames
- Read buffer sizing
- Health check validation (length, header, body)
- Hex diagnostics in error messages
"""

import pytest

from mcprotocol.errors import (
    FrameEncodingError,
    MCProtocolError,
    ProtocolLengthError,
    ValidationError,
)
from mcprotocol.response import (
    HEALTH_CHECK_RESPONSE_SIZE,
    RESPONSE_HEADER_SIZE,
    WRITE_RESPONSE_SIZE,
    decode_frame,
    format_hex,
    read_buffer_size,
    validate_health_check,
)


def _health_response(header: str = "0500", body: str = "4142434445") -> bytes:
    return bytes(11) + bytes.fromhex(header) + bytes.fromhex(body)


# ================================================================
# FRAME DECODING TESTS
# ================================================================
class TestDecodeFrame:
    """Test hex frame decoding."""

    def test_decodes_hex_pairs(self):
        """Test a valid frame decodes to raw bytes.

        WHY: Stations hand over frames as hex strings.
        """
        assert decode_frame("500000FF") == b"\x50\x00\x00\xff"

    def test_accepts_lower_case(self):
        assert decode_frame("0aff") == b"\x0a\xff"

    def test_empty_frame_decodes_to_empty_payload(self):
        assert decode_frame("") == b""

    def test_odd_length_rejected(self):
        """Test odd-length frames are rejected.

        WHY: A dangling nibble means the station built a broken frame.
        """
        with pytest.raises(FrameEncodingError) as exc_info:
            decode_frame("500")

        assert exc_info.value.frame == "500"

    def test_non_hex_rejected(self):
        with pytest.raises(FrameEncodingError):
            decode_frame("50ZZ")

    def test_whitespace_rejected(self):
        """Test separators between byte pairs are not tolerated.

        WHY: Frames must be contiguous digit pairs.
        """
        with pytest.raises(FrameEncodingError):
            decode_frame("50 00")

    def test_non_ascii_rejected(self):
        with pytest.raises(FrameEncodingError):
            decode_frame("5é")

    def test_encoding_error_is_protocol_error(self):
        with pytest.raises(MCProtocolError):
            decode_frame("X")


# ================================================================
# BUFFER SIZING TESTS
# ================================================================
class TestReadBufferSize:
    """Test response buffer sizing."""

    @pytest.mark.parametrize("num_points", [0, 1, 10, 960])
    def test_header_plus_two_bytes_per_point(self, num_points):
        """Test buffer capacity is 22 + 2 * num_points.

        WHY: Read responses carry a 22 byte header and one word per point.
        """
        assert read_buffer_size(num_points) == 22 + 2 * num_points

    def test_zero_points_is_header_only(self):
        assert read_buffer_size(0) == RESPONSE_HEADER_SIZE

    def test_negative_points_rejected(self):
        with pytest.raises(ValueError):
            read_buffer_size(-1)

    def test_write_response_is_header_size(self):
        assert WRITE_RESPONSE_SIZE == 22


# ================================================================
# HEALTH CHECK VALIDATION TESTS
# ================================================================
class TestValidateHealthCheck:
    """Test health check response validation."""

    def test_valid_response_passes(self):
        resp = _health_response()
        assert len(resp) == HEALTH_CHECK_RESPONSE_SIZE

        validate_health_check(resp)

    @pytest.mark.parametrize("length", [0, 13, 17, 19, 30])
    def test_wrong_length_fails(self, length):
        """Test anything but exactly 18 bytes fails.

        WHY: The check is exact, not "at least".
        """
        resp = (_health_response() + bytes(12))[:length]

        with pytest.raises(ProtocolLengthError) as exc_info:
            validate_health_check(resp)

        assert exc_info.value.field == "length"
        assert exc_info.value.expected == 18
        assert exc_info.value.received == resp

    def test_length_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            validate_health_check(_health_response()[:17])

    def test_length_error_message_contains_received_hex(self):
        resp = _health_response()[:17]

        with pytest.raises(ValidationError) as exc_info:
            validate_health_check(resp)

        assert format_hex(resp) in str(exc_info.value)

    def test_header_mismatch_fails(self):
        """Test a wrong loopback count fails with the header field.

        WHY: 0500 is the loopback data count echoed by the PLC.
        """
        resp = _health_response(header="0400")

        with pytest.raises(ValidationError) as exc_info:
            validate_health_check(resp)

        assert exc_info.value.field == "header"
        assert not isinstance(exc_info.value, ProtocolLengthError)
        assert "[0400]" in str(exc_info.value)
        assert format_hex(resp) in str(exc_info.value)

    def test_body_mismatch_fails(self):
        resp = _health_response(body="4142434446")

        with pytest.raises(ValidationError) as exc_info:
            validate_health_check(resp)

        assert exc_info.value.field == "body"
        assert "[4142434446]" in str(exc_info.value)

    def test_header_checked_before_body(self):
        resp = _health_response(header="0000", body="0000000000")

        with pytest.raises(ValidationError) as exc_info:
            validate_health_check(resp)

        assert exc_info.value.field == "header"


def test_format_hex_is_upper_case():
    assert format_hex(b"\xab\x01") == "AB01"

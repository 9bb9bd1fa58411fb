"""Unit tests for lastmile.core.credentials: OTP and QR payload helpers."""

from __future__ import annotations

import re
from unittest.mock import patch

import pytest

from lastmile.core.credentials import (
    build_qr_payload,
    credentials_match,
    generate_otp,
    parse_qr_payload,
)
from lastmile.core.errors import MalformedCredential


class TestGenerateOtp:
    def test_default_six_digits(self):
        assert re.fullmatch(r"\d{6}", generate_otp())

    def test_custom_length_keeps_leading_zeros(self):
        with patch("lastmile.core.credentials.secrets.choice", return_value="0"):
            assert generate_otp(8) == "00000000"

    def test_uses_every_digit_eventually(self):
        seen = set("".join(generate_otp() for _ in range(200)))
        assert seen == set("0123456789")

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError, match="positive"):
            generate_otp(0)


class TestQrPayload:
    def test_build(self):
        assert build_qr_payload("ord-1", "123456") == "DELIVERY:ord-1:123456"

    def test_build_custom_tag(self):
        assert build_qr_payload("ord-1", "123456", tag="POD") == "POD:ord-1:123456"

    def test_build_rejects_delimiter_in_order_id(self):
        with pytest.raises(MalformedCredential) as exc_info:
            build_qr_payload("a:b", "123456")
        assert exc_info.value.order_id == "a:b"

    def test_parse(self):
        parsed = parse_qr_payload("DELIVERY:ord-1:123456")

        assert parsed.order_id == "ord-1"
        assert parsed.otp == "123456"

    @pytest.mark.parametrize(
        "payload",
        ["", "DELIVERY:ord-1", "X:ord-1:123456", "DELIVERY:a:b:c", ":::"],
    )
    def test_parse_rejects(self, payload):
        with pytest.raises(MalformedCredential, match="Invalid QR code format"):
            parse_qr_payload(payload)

    def test_parse_keeps_empty_segments(self):
        parsed = parse_qr_payload("DELIVERY::")

        assert parsed.order_id == ""
        assert parsed.otp == ""


class TestCredentialsMatch:
    def test_exact(self):
        assert credentials_match("123456", "123456")

    @pytest.mark.parametrize("supplied", ["12345", "1234567", "123456 ", "654321"])
    def test_mismatch(self, supplied):
        assert not credentials_match("123456", supplied)

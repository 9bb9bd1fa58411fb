"""Delivery credential helpers.

The QR payload is a colon-delimited string ``<tag>:<order_id>:<otp>``
(tag ``DELIVERY`` unless configured otherwise).  Order ids containing
the delimiter cannot be encoded unambiguously and are rejected at
generation time rather than producing a payload that never verifies.
"""

from __future__ import annotations

import hmac
import secrets
import string
from typing import NamedTuple

from lastmile.core.errors import MalformedCredential

QR_DELIMITER = ":"
DEFAULT_QR_TAG = "DELIVERY"


class QrPayload(NamedTuple):
    order_id: str
    otp: str


def generate_otp(length: int = 6) -> str:
    """Return *length* digits, each drawn uniformly from 0-9."""
    if length <= 0:
        msg = f"OTP length must be positive (got {length})"
        raise ValueError(msg)
    return "".join(secrets.choice(string.digits) for _ in range(length))


def build_qr_payload(order_id: str, otp: str, tag: str = DEFAULT_QR_TAG) -> str:
    """Encode *order_id* and *otp* as a QR payload string."""
    if QR_DELIMITER in order_id:
        raise MalformedCredential(
            f"Order id {order_id!r} contains {QR_DELIMITER!r} and cannot be "
            "encoded in a QR payload",
            order_id=order_id,
        )
    return QR_DELIMITER.join((tag, order_id, otp))


def parse_qr_payload(payload: str, tag: str = DEFAULT_QR_TAG) -> QrPayload:
    """Split a QR payload into its order id and OTP.

    Raises :class:`MalformedCredential` unless the payload has exactly
    three segments and the first one equals *tag*.
    """
    parts = payload.split(QR_DELIMITER)
    if len(parts) != 3 or parts[0] != tag:
        raise MalformedCredential("Invalid QR code format")
    return QrPayload(order_id=parts[1], otp=parts[2])


def credentials_match(stored: str, supplied: str) -> bool:
    """Exact, case-sensitive comparison in constant time."""
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))

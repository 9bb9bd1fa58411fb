"""Sensitive data sanitization for log output.

Provides :func:`sanitize_for_logs` which redacts delivery credentials
(OTP digits and QR payloads) from data structures before they are
written to log files.  Order ids and timestamps pass through so the
events stay useful for audit.
"""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

# Keys whose values are always a credential
_SECRET_KEYS = frozenset(
    {
        "otp",
        "delivery_otp",
        "supplied_otp",
        "expected_otp",
        "qr_code",
        "delivery_qr_code",
        "payload",
    },
)

# ``DELIVERY:<order id>:<otp>`` embedded in free text
_QR_PAYLOAD_RE = re.compile(r"\b([A-Z][A-Z0-9_]*):([^:\s]+):(\d+)\b")


def sanitize_qr(text: str) -> str:
    """Keep the tag and order id of embedded QR payloads, redact the OTP."""

    def _redact(m) -> str:
        return f"{m.group(1)}:{m.group(2)}:{REDACTED}"

    return _QR_PAYLOAD_RE.sub(_redact, text)


def sanitize_for_logs(data: Any) -> Any:
    """Recursively sanitize credential material in *data*.

    Handles dicts, lists, tuples and plain strings.  Non-sensitive data
    passes through unchanged.
    """
    if isinstance(data, dict):
        return {
            k: (REDACTED if k in _SECRET_KEYS and v is not None else sanitize_for_logs(v))
            for k, v in data.items()
        }

    if isinstance(data, (list, tuple)):
        return type(data)(sanitize_for_logs(item) for item in data)

    if isinstance(data, str):
        return sanitize_qr(data)

    return data

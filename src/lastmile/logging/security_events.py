"""Structured security event logger.

Emits standardized events for proof-of-delivery activity.  All events
are logged to the ``lastmile.security`` logger with a consistent
``event_id`` field for filtering and alerting.

Credential material (OTPs, QR payloads) is redacted via
:func:`~lastmile.logging.sanitize.sanitize_for_logs` before emission.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lastmile.logging.sanitize import sanitize_for_logs

if TYPE_CHECKING:
    from datetime import datetime

security_log = logging.getLogger("lastmile.security")


def _emit(
    event_id: str,
    message: str,
    *args: Any,  # noqa: ANN401
    order_id: str | None = None,
    severity: str = "INFO",
    **extra: Any,  # noqa: ANN401
) -> None:
    """Emit a structured security event.

    All *extra* keyword arguments are sanitized to redact credentials
    before logging.
    """
    data: dict[str, object] = {
        "event_id": event_id,
        "severity": severity,
    }
    if order_id is not None:
        data["order_id"] = str(order_id)
    data.update(sanitize_for_logs(extra))
    level = getattr(logging, severity.upper(), logging.INFO)
    security_log.log(level, message, *args, extra=data)


def verification_generated(order_id: str, expires_at: datetime) -> None:
    """Log issuance of a delivery credential."""
    _emit(
        "lastmile.security.verification_generated",
        "Delivery credential issued for order %s",
        order_id,
        order_id=order_id,
        expires_at=expires_at.isoformat(),
    )


def verification_succeeded(order_id: str, method: str) -> None:
    """Log a successful proof of delivery."""
    _emit(
        "lastmile.security.verification_succeeded",
        "Order %s verified via %s",
        order_id,
        method,
        order_id=order_id,
        method=method,
    )


def verification_failed(
    order_id: str | None,
    method: str,
    reason: str,
    **extra: Any,  # noqa: ANN401
) -> None:
    """Log a rejected verification attempt."""
    _emit(
        "lastmile.security.verification_failed",
        "Verification via %s rejected for order %s: %s",
        method,
        order_id or "?",
        reason,
        order_id=order_id,
        method=method,
        reason=reason,
        severity="WARNING",
        **extra,
    )

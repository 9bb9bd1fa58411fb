"""Enumerated types for the lastmile delivery core.

All enums inherit from :class:`enum.StrEnum` so their ``.value`` is a
plain string that psycopg serialises as TEXT and JSON round-trips
naturally.  Status values are upper-case because the order record is
shared with the rest of the platform, which stores them that way.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


class OrderStatus(StrEnum):
    PENDING = "PENDING"
    SEARCHING_AGENT = "SEARCHING_AGENT"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    AT_WAREHOUSE = "AT_WAREHOUSE"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELAYED = "DELAYED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerificationMethod(StrEnum):
    OTP = "OTP"
    QR = "QR"


# ---------------------------------------------------------------------------
# Delay checks
# ---------------------------------------------------------------------------


class DelayCheckResult(StrEnum):
    """Outcome of a single delay check.

    ``CHECK_FAILED`` means the order could not be read or written, which
    is not the same thing as "not delayed".  Truthiness is kept for
    callers that only care about the boolean: only ``DELAYED`` is true.
    """

    DELAYED = "delayed"
    NOT_DELAYED = "not_delayed"
    CHECK_FAILED = "check_failed"

    def __bool__(self) -> bool:
        return self is DelayCheckResult.DELAYED

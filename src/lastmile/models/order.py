"""Order entity and the read-only projections derived from it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from lastmile.core.types import OrderStatus

if TYPE_CHECKING:
    from lastmile.core.types import VerificationMethod

_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class Order:
    id: str
    status: OrderStatus
    delivery_otp: str | None = None
    delivery_qr_code: str | None = None
    otp_expires_at: datetime | None = None
    verified_at: datetime | None = None
    verification_method: VerificationMethod | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    picked_up_at: datetime | None = None
    estimated_duration: int | None = None
    created_at: datetime = _EPOCH
    updated_at: datetime = _EPOCH

    @property
    def is_terminal(self) -> bool:
        """Delivered or cancelled; the delay monitor never touches these."""
        return self.delivered_at is not None or self.cancelled_at is not None

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at is not None or self.status is OrderStatus.CANCELLED

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    @property
    def has_credential(self) -> bool:
        return self.delivery_otp is not None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class VerificationDetails:
    """Verification fields of an order, as returned to callers."""

    order_id: str
    otp: str | None
    qr_code: str | None
    expires_at: datetime | None
    verified_at: datetime | None
    verification_method: VerificationMethod | None
    status: OrderStatus

    @classmethod
    def from_order(cls, order: Order) -> VerificationDetails:
        return cls(
            order_id=order.id,
            otp=order.delivery_otp,
            qr_code=order.delivery_qr_code,
            expires_at=order.otp_expires_at,
            verified_at=order.verified_at,
            verification_method=order.verification_method,
            status=order.status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "otp": self.otp,
            "qr_code": self.qr_code,
            "expires_at": _iso(self.expires_at),
            "verified_at": _iso(self.verified_at),
            "verification_method": (
                self.verification_method.value if self.verification_method else None
            ),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class OrderTiming:
    """Elapsed and remaining delivery time for display."""

    elapsed_minutes: int
    remaining_minutes: int
    is_delayed: bool
    elapsed_display: str
    remaining_display: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "elapsed_minutes": self.elapsed_minutes,
            "remaining_minutes": self.remaining_minutes,
            "is_delayed": self.is_delayed,
            "elapsed_display": self.elapsed_display,
            "remaining_display": self.remaining_display,
        }

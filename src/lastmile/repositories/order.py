"""Order repository.

Only the verification and delay columns are written here; the rest of
the order record belongs to the surrounding platform.  Every write that
depends on a previously read value is a conditional UPDATE that returns
``None`` when the guard no longer holds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pypgkit import BaseRepository, Database

from lastmile.core.types import OrderStatus, VerificationMethod
from lastmile.models.order import Order

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime


class OrderRepository(BaseRepository[Order]):
    table_name = "orders"
    primary_key = "id"

    def _row_to_entity(self, row: dict) -> Order:
        method = row.get("verification_method")
        return Order(
            id=row["id"],
            status=OrderStatus(row["status"]),
            delivery_otp=row.get("delivery_otp"),
            delivery_qr_code=row.get("delivery_qr_code"),
            otp_expires_at=row.get("otp_expires_at"),
            verified_at=row.get("verified_at"),
            verification_method=VerificationMethod(method) if method else None,
            delivered_at=row.get("delivered_at"),
            cancelled_at=row.get("cancelled_at"),
            picked_up_at=row.get("picked_up_at"),
            estimated_duration=row.get("estimated_duration"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _entity_to_row(self, entity: Order) -> dict:
        return {
            "id": entity.id,
            "status": entity.status.value,
            "delivery_otp": entity.delivery_otp,
            "delivery_qr_code": entity.delivery_qr_code,
            "otp_expires_at": entity.otp_expires_at,
            "verified_at": entity.verified_at,
            "verification_method": (
                entity.verification_method.value if entity.verification_method else None
            ),
            "delivered_at": entity.delivered_at,
            "cancelled_at": entity.cancelled_at,
            "picked_up_at": entity.picked_up_at,
            "estimated_duration": entity.estimated_duration,
        }

    def save_credential(
        self,
        order_id: str,
        otp: str,
        qr_code: str,
        expires_at: datetime,
    ) -> Order | None:
        """Store a freshly generated credential, replacing any earlier one.

        The three fields are written in a single statement so a reader
        never sees an OTP paired with another OTP's QR payload or expiry.
        Returns ``None`` if the order does not exist or was verified or
        cancelled in the meantime.
        """
        db = Database.get_instance()
        row = db.fetch_one(
            "UPDATE orders "
            "SET delivery_otp = %s, delivery_qr_code = %s, otp_expires_at = %s, "
            "    updated_at = now() "
            "WHERE id = %s AND verified_at IS NULL "
            "  AND cancelled_at IS NULL AND status <> 'CANCELLED' "
            "RETURNING *",
            (otp, qr_code, expires_at, order_id),
            as_dict=True,
        )
        return self._row_to_entity(row) if row else None

    def mark_verified(
        self,
        order_id: str,
        expected_otp: str,
        method: VerificationMethod,
        verified_at: datetime,
    ) -> Order | None:
        """Atomic compare-and-swap completion of a verification.

        Succeeds only while the stored OTP still equals *expected_otp*
        and the order has been neither verified nor cancelled.  An
        existing ``delivered_at`` is preserved.  Returns the updated
        order, or ``None`` if the guard failed.
        """
        db = Database.get_instance()
        row = db.fetch_one(
            "UPDATE orders "
            "SET verified_at = %s, verification_method = %s, status = %s, "
            "    delivered_at = COALESCE(delivered_at, %s), updated_at = now() "
            "WHERE id = %s AND delivery_otp = %s AND verified_at IS NULL "
            "  AND cancelled_at IS NULL AND status <> 'CANCELLED' "
            "RETURNING *",
            (
                verified_at,
                method.value,
                OrderStatus.DELIVERED.value,
                verified_at,
                order_id,
                expected_otp,
            ),
            as_dict=True,
        )
        return self._row_to_entity(row) if row else None

    def transition_status(
        self,
        order_id: str,
        from_status: OrderStatus,
        to_status: OrderStatus,
    ) -> Order | None:
        """Atomic compare-and-swap status transition for live orders.

        Returns the updated order, or ``None`` if the current status did
        not match *from_status* or the order became terminal.
        """
        db = Database.get_instance()
        row = db.fetch_one(
            "UPDATE orders SET status = %s, updated_at = now() "
            "WHERE id = %s AND status = %s "
            "  AND delivered_at IS NULL AND cancelled_at IS NULL "
            "RETURNING *",
            (to_status.value, order_id, from_status.value),
            as_dict=True,
        )
        return self._row_to_entity(row) if row else None

    def find_delay_candidates(
        self,
        statuses: Iterable[OrderStatus],
        *,
        after_id: str | None = None,
        limit: int = 500,
    ) -> list[Order]:
        """Return live orders that can be checked for delay, keyset-paginated.

        Candidates have one of *statuses*, a pickup time and an
        estimated duration, and neither delivery nor cancellation
        recorded.  Pass the last id of a page as *after_id* to fetch the
        next one.
        """
        status_values = [s.value for s in statuses]
        if not status_values:
            return []
        db = Database.get_instance()
        placeholders = ", ".join(["%s"] * len(status_values))
        base = (
            "SELECT * FROM orders "
            f"WHERE status IN ({placeholders}) "
            "  AND picked_up_at IS NOT NULL "
            "  AND estimated_duration IS NOT NULL "
            "  AND delivered_at IS NULL AND cancelled_at IS NULL "
        )
        if after_id is not None:
            rows = db.fetch_all(
                base + "AND id > %s ORDER BY id LIMIT %s",
                (*status_values, after_id, limit),
                as_dict=True,
            )
        else:
            rows = db.fetch_all(
                base + "ORDER BY id LIMIT %s",
                (*status_values, limit),
                as_dict=True,
            )
        return [self._row_to_entity(r) for r in rows]

"""Verification service: issue and check proof-of-delivery credentials.

An order that is out for delivery gets a short numeric OTP and a QR
payload encoding the same OTP.  The recipient presents either one; a
successful check marks the order verified and delivered in a single
conditional write, so two concurrent presentations of the same
credential can never both succeed.

Usage::

    svc = VerificationService(order_repo, settings.verification)
    details = svc.generate(order_id)                 # issue / re-issue
    order   = svc.verify_otp(order_id, "123456")     # manual entry
    order   = svc.verify_qr("DELIVERY:<id>:123456")  # scanned code
    details = svc.get_verification(order_id)         # read-only view
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from lastmile.core.credentials import (
    build_qr_payload,
    credentials_match,
    generate_otp,
    parse_qr_payload,
)
from lastmile.core.errors import (
    AlreadyVerified,
    CredentialExpired,
    DeliveryProblem,
    InvalidCredential,
    NoCredentialIssued,
    OrderNotEligible,
    OrderNotFound,
)
from lastmile.core.state import log_transition
from lastmile.core.types import OrderStatus, VerificationMethod
from lastmile.logging import security_events
from lastmile.models.order import Order, VerificationDetails

if TYPE_CHECKING:
    from collections.abc import Callable

    from lastmile.config.settings import VerificationSettings
    from lastmile.metrics.collector import MetricsCollector
    from lastmile.repositories.order import OrderRepository

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class VerificationService:
    """Generate, check and report delivery credentials."""

    def __init__(
        self,
        order_repo: OrderRepository,
        settings: VerificationSettings,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = order_repo
        self._settings = settings
        self._metrics = metrics
        self._now = clock or _utcnow

    # -- generation ---------------------------------------------------------

    def generate(self, order_id: str) -> VerificationDetails:
        """Issue a fresh OTP and QR payload for *order_id*.

        Any earlier credential is replaced and stops verifying.  The
        order must exist, be unverified and be in one of the configured
        eligible statuses.
        """
        order = self._load(order_id)
        if order.is_verified:
            raise AlreadyVerified(
                f"Order {order_id} has already been verified",
                order_id=order_id,
            )
        if order.is_cancelled:
            raise self._cancelled(order_id)
        if order.status not in self._settings.eligible_statuses:
            raise OrderNotEligible(
                f"Order {order_id} is {order.status.value}; a delivery credential "
                "can only be issued once the order is picked up",
                order_id=order_id,
            )

        otp = generate_otp(self._settings.otp_length)
        qr_code = build_qr_payload(order.id, otp, self._settings.qr_tag)
        expires_at = self._now() + timedelta(minutes=self._settings.otp_ttl_minutes)

        updated = self._repo.save_credential(order.id, otp, qr_code, expires_at)
        if updated is None:
            # Verified, cancelled or removed between the read and the write
            current = self._repo.find_by_id(order_id)
            if current is None:
                raise OrderNotFound(f"Order {order_id} not found", order_id=order_id)
            if current.is_cancelled:
                raise self._cancelled(order_id)
            raise AlreadyVerified(
                f"Order {order_id} has already been verified",
                order_id=order_id,
            )

        security_events.verification_generated(order.id, expires_at)
        if self._metrics is not None:
            self._metrics.increment("lastmile_verifications_generated_total")
        return VerificationDetails.from_order(updated)

    # -- verification -------------------------------------------------------

    def verify_otp(
        self,
        order_id: str,
        otp: str,
        *,
        method: VerificationMethod = VerificationMethod.OTP,
    ) -> Order:
        """Check *otp* against the stored credential and mark the order delivered.

        Failure checks run in a fixed order: unknown order, already
        verified, cancelled, no credential, mismatch, expiry.  A wrong
        OTP is therefore reported as a mismatch even after the
        credential expired.
        """
        order = self._repo.find_by_id(order_id)
        if order is None:
            raise self._reject(
                OrderNotFound(f"Order {order_id} not found", order_id=order_id),
                method,
            )
        if order.is_verified:
            raise self._reject(
                AlreadyVerified(f"Order {order_id} has already been verified", order_id=order_id),
                method,
            )
        if order.is_cancelled:
            raise self._reject(self._cancelled(order_id), method)
        if not order.has_credential:
            raise self._reject(
                NoCredentialIssued(
                    f"No delivery credential has been issued for order {order_id}",
                    order_id=order_id,
                ),
                method,
            )
        if not credentials_match(order.delivery_otp, otp):
            raise self._reject(
                InvalidCredential(f"Invalid OTP for order {order_id}", order_id=order_id),
                method,
            )

        now = self._now()
        if order.otp_expires_at is not None and now > order.otp_expires_at:
            raise self._reject(
                CredentialExpired(
                    f"OTP for order {order_id} expired at {order.otp_expires_at.isoformat()}",
                    order_id=order_id,
                ),
                method,
                expired_at=order.otp_expires_at.isoformat(),
            )

        updated = self._repo.mark_verified(order.id, order.delivery_otp, method, now)
        if updated is None:
            raise self._reject(self._lost_race(order_id), method)

        log_transition(
            order.id,
            order.status,
            OrderStatus.DELIVERED,
            reason=f"verified via {method.value}",
        )
        security_events.verification_succeeded(order.id, method.value)
        self._count(method, "success")
        return updated

    def verify_qr(self, payload: str) -> Order:
        """Parse a scanned QR payload and verify the OTP it carries.

        A malformed payload is rejected before any order is loaded.
        The verification is recorded with method ``QR``.
        """
        try:
            parsed = parse_qr_payload(payload, self._settings.qr_tag)
        except DeliveryProblem as exc:
            raise self._reject(exc, VerificationMethod.QR) from None
        return self.verify_otp(parsed.order_id, parsed.otp, method=VerificationMethod.QR)

    # -- read-only ----------------------------------------------------------

    def get_verification(self, order_id: str) -> VerificationDetails:
        """Return the verification fields of *order_id* without side effects."""
        return VerificationDetails.from_order(self._load(order_id))

    # -- helpers ------------------------------------------------------------

    def _load(self, order_id: str) -> Order:
        order = self._repo.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found", order_id=order_id)
        return order

    def _lost_race(self, order_id: str) -> DeliveryProblem:
        """Map a failed conditional write to the error a re-check would give."""
        current = self._repo.find_by_id(order_id)
        if current is None:
            return OrderNotFound(f"Order {order_id} not found", order_id=order_id)
        if current.is_verified:
            return AlreadyVerified(
                f"Order {order_id} has already been verified",
                order_id=order_id,
            )
        if current.is_cancelled:
            return self._cancelled(order_id)
        log.info("Credential for order %s changed during verification", order_id)
        return InvalidCredential(f"Invalid OTP for order {order_id}", order_id=order_id)

    @staticmethod
    def _cancelled(order_id: str) -> OrderNotEligible:
        return OrderNotEligible(f"Order {order_id} has been cancelled", order_id=order_id)

    def _reject(
        self,
        problem: DeliveryProblem,
        method: VerificationMethod,
        **extra: object,
    ) -> DeliveryProblem:
        reason = problem.error_type.rsplit(":", 1)[-1]
        security_events.verification_failed(problem.order_id, method.value, reason, **extra)
        self._count(method, reason)
        return problem

    def _count(self, method: VerificationMethod, result: str) -> None:
        if self._metrics is not None:
            self._metrics.increment(
                "lastmile_verifications_total",
                labels={"method": method.value, "result": result},
            )

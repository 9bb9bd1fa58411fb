"""Problem-details errors for delivery verification.

Every failure the verification engine reports is a subclass of
:class:`DeliveryProblem`, which carries an error-type URN, a
human-readable detail and the HTTP status an API layer should map it
to.  Callers may catch the base class or branch on the concrete type.

Usage::

    raise InvalidCredential(f"OTP mismatch for order {order_id}")
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Error-type URNs
# ---------------------------------------------------------------------------
_P = "urn:lastmile:error:"

ORDER_NOT_FOUND = _P + "orderNotFound"
NO_CREDENTIAL_ISSUED = _P + "noCredentialIssued"
INVALID_CREDENTIAL = _P + "invalidCredential"
CREDENTIAL_EXPIRED = _P + "credentialExpired"
MALFORMED_CREDENTIAL = _P + "malformedCredential"
ALREADY_VERIFIED = _P + "alreadyVerified"
ORDER_NOT_ELIGIBLE = _P + "orderNotEligible"


# ---------------------------------------------------------------------------
# Base problem
# ---------------------------------------------------------------------------


class DeliveryProblem(Exception):
    """A *problem details* object that doubles as an exception.

    Parameters
    ----------
    error_type:
        One of the URN constants above.
    detail:
        Human-readable explanation of the problem.
    status:
        HTTP status code an API layer should answer with (default 400).
    order_id:
        The order the problem refers to, when known.

    """

    default_type: str = "about:blank"
    default_status: int = 400

    def __init__(
        self,
        detail: str,
        *,
        error_type: str | None = None,
        status: int | None = None,
        order_id: str | None = None,
    ) -> None:
        self.error_type = error_type or self.default_type
        self.detail = detail
        self.status = status if status is not None else self.default_status
        self.order_id = order_id
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a problem-details JSON structure."""
        body: dict[str, Any] = {
            "type": self.error_type,
            "detail": self.detail,
            "status": self.status,
        }
        if self.order_id is not None:
            body["order_id"] = self.order_id
        return body


# ---------------------------------------------------------------------------
# Concrete problems
# ---------------------------------------------------------------------------


class OrderNotFound(DeliveryProblem):
    default_type = ORDER_NOT_FOUND
    default_status = 404


class NoCredentialIssued(DeliveryProblem):
    """The order exists but no OTP has been generated for it."""

    default_type = NO_CREDENTIAL_ISSUED
    default_status = 409


class InvalidCredential(DeliveryProblem):
    default_type = INVALID_CREDENTIAL
    default_status = 400


class CredentialExpired(DeliveryProblem):
    default_type = CREDENTIAL_EXPIRED
    default_status = 410


class MalformedCredential(DeliveryProblem):
    """A QR payload could not be parsed, or an order id cannot be encoded."""

    default_type = MALFORMED_CREDENTIAL
    default_status = 400


class AlreadyVerified(DeliveryProblem):
    default_type = ALREADY_VERIFIED
    default_status = 409


class OrderNotEligible(DeliveryProblem):
    """The order's status does not allow a delivery credential yet."""

    default_type = ORDER_NOT_ELIGIBLE
    default_status = 409

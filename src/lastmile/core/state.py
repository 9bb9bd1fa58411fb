"""Delivery order state machine.

Lists the moves this package makes.  The delay monitor checks every
status write with :func:`assert_transition` before issuing it.  Delivery
verification may complete any order that is not yet verified.

Usage::

    from lastmile.core.state import ORDER_TRANSITIONS, assert_transition
    from lastmile.core.types import OrderStatus

    assert_transition(
        OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELAYED,
        ORDER_TRANSITIONS,
    )
"""

from __future__ import annotations

import logging

from lastmile.core.types import TERMINAL_STATUSES, OrderStatus

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# any live status -> delayed/delivered,
# delayed -> any other live status (estimate extended) / delivered.
# delivered & cancelled are terminal.
# ---------------------------------------------------------------------------

_LIVE = frozenset(OrderStatus) - TERMINAL_STATUSES - {OrderStatus.DELAYED}

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    **{s: frozenset({OrderStatus.DELAYED, OrderStatus.DELIVERED}) for s in _LIVE},
    OrderStatus.DELAYED: _LIVE | {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus, table: dict) -> bool:
    """Return True if *current* -> *target* is listed in *table*."""
    return target in table.get(current, frozenset())


def assert_transition(
    current: OrderStatus,
    target: OrderStatus,
    table: dict,
) -> None:
    """Raise :class:`ValueError` if *current* -> *target* is not allowed.

    Parameters
    ----------
    current:
        The current status of the order.
    target:
        The desired new status.
    table:
        Usually :data:`ORDER_TRANSITIONS`.

    """
    allowed = table.get(current)
    if allowed is None:
        msg = f"Unknown status {current!r}"
        raise ValueError(msg)
    if target not in allowed:
        msg = (
            f"Invalid transition {current.value!r} -> {target.value!r}; "
            f"allowed targets: {sorted(s.value for s in allowed) or '(terminal)'}"
        )
        raise ValueError(msg)


def log_transition(
    order_id,
    from_status,
    to_status,
    *,
    reason: str | None = None,
) -> None:
    """Emit a structured log entry for an order status change."""
    extra = {
        "event": "state_transition",
        "resource_type": "order",
        "resource_id": str(order_id),
        "from_status": from_status.value if hasattr(from_status, "value") else str(from_status),
        "to_status": to_status.value if hasattr(to_status, "value") else str(to_status),
    }
    if reason:
        extra["reason"] = reason
    log.info(
        "order %s: %s -> %s%s",
        order_id,
        extra["from_status"],
        extra["to_status"],
        f" ({reason})" if reason else "",
        extra=extra,
    )

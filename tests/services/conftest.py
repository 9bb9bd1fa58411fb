"""Fixtures for service tests: an in-memory order store and a fixed clock."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from lastmile.core.types import OrderStatus
from lastmile.models.order import Order

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeOrderRepository:
    """Dict-backed stand-in honouring the same guards as the SQL in OrderRepository."""

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.writes: list[tuple] = []
        self.fail_reads = False
        self.fail_writes = False

    def add(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    def find_by_id(self, order_id):
        if self.fail_reads:
            raise RuntimeError("store unavailable")
        return self.orders.get(order_id)

    def save_credential(self, order_id, otp, qr_code, expires_at):
        self._check_writable()
        order = self.orders.get(order_id)
        if order is None or order.verified_at is not None or order.is_cancelled:
            return None
        order = replace(
            order, delivery_otp=otp, delivery_qr_code=qr_code, otp_expires_at=expires_at
        )
        self.orders[order_id] = order
        self.writes.append(("save_credential", order_id))
        return order

    def mark_verified(self, order_id, expected_otp, method, verified_at):
        self._check_writable()
        order = self.orders.get(order_id)
        if (
            order is None
            or order.delivery_otp != expected_otp
            or order.verified_at is not None
            or order.is_cancelled
        ):
            return None
        order = replace(
            order,
            verified_at=verified_at,
            verification_method=method,
            status=OrderStatus.DELIVERED,
            delivered_at=order.delivered_at or verified_at,
        )
        self.orders[order_id] = order
        self.writes.append(("mark_verified", order_id))
        return order

    def transition_status(self, order_id, from_status, to_status):
        self._check_writable()
        order = self.orders.get(order_id)
        if order is None or order.status != from_status or order.is_terminal:
            return None
        order = replace(order, status=to_status)
        self.orders[order_id] = order
        self.writes.append(("transition_status", order_id, from_status, to_status))
        return order

    def find_delay_candidates(self, statuses, *, after_id=None, limit=500):
        if self.fail_reads:
            raise RuntimeError("store unavailable")
        wanted = set(statuses)
        rows = [
            o
            for o in sorted(self.orders.values(), key=lambda o: o.id)
            if o.status in wanted
            and o.picked_up_at is not None
            and o.estimated_duration is not None
            and not o.is_terminal
            and (after_id is None or o.id > after_id)
        ]
        return rows[:limit]

    def _check_writable(self) -> None:
        if self.fail_writes:
            raise RuntimeError("store unavailable")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def repo() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture()
def verification_settings():
    return SimpleNamespace(
        otp_length=6,
        otp_ttl_minutes=30,
        qr_tag="DELIVERY",
        eligible_statuses=(
            OrderStatus.PICKED_UP,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELAYED,
        ),
    )


@pytest.fixture()
def delay_settings():
    return SimpleNamespace(
        monitored_statuses=(
            OrderStatus.PICKED_UP,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELAYED,
        ),
        revert_status=OrderStatus.OUT_FOR_DELIVERY,
        sweep_batch_size=500,
    )

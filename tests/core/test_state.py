"""Unit tests for lastmile.core.state: order transition table."""

from __future__ import annotations

import logging

import pytest

from lastmile.core.state import (
    ORDER_TRANSITIONS,
    assert_transition,
    can_transition,
    log_transition,
)
from lastmile.core.types import OrderStatus

LIVE = [
    s
    for s in OrderStatus
    if s not in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.DELAYED)
]


class TestOrderTransitions:
    def test_every_status_listed(self):
        assert set(ORDER_TRANSITIONS) == set(OrderStatus)

    @pytest.mark.parametrize("status", LIVE)
    def test_live_status_can_become_delayed(self, status):
        assert_transition(status, OrderStatus.DELAYED, ORDER_TRANSITIONS)

    @pytest.mark.parametrize("status", LIVE)
    def test_delayed_can_return_to_live_status(self, status):
        assert_transition(OrderStatus.DELAYED, status, ORDER_TRANSITIONS)

    def test_delayed_to_delayed_rejected(self):
        with pytest.raises(ValueError, match="Invalid transition"):
            assert_transition(OrderStatus.DELAYED, OrderStatus.DELAYED, ORDER_TRANSITIONS)

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_statuses_have_no_targets(self, terminal):
        with pytest.raises(ValueError, match=r"\(terminal\)"):
            assert_transition(terminal, OrderStatus.DELAYED, ORDER_TRANSITIONS)

    def test_unknown_status(self):
        with pytest.raises(ValueError, match="Unknown status"):
            assert_transition(OrderStatus.PENDING, OrderStatus.DELAYED, {})

    def test_can_transition(self):
        assert can_transition(OrderStatus.PICKED_UP, OrderStatus.DELAYED, ORDER_TRANSITIONS)
        assert not can_transition(OrderStatus.DELIVERED, OrderStatus.DELAYED, ORDER_TRANSITIONS)
        assert not can_transition(OrderStatus.PENDING, OrderStatus.DELAYED, {})


class TestLogTransition:
    def test_structured_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger="lastmile.core.state"):
            log_transition(
                "ord-1",
                OrderStatus.OUT_FOR_DELIVERY,
                OrderStatus.DELAYED,
                reason="past estimated duration",
            )

        record = caplog.records[-1]
        assert record.event == "state_transition"
        assert record.resource_id == "ord-1"
        assert record.from_status == "OUT_FOR_DELIVERY"
        assert record.to_status == "DELAYED"
        assert record.reason == "past estimated duration"
        assert "(past estimated duration)" in record.getMessage()

    def test_without_reason(self, caplog):
        with caplog.at_level(logging.INFO, logger="lastmile.core.state"):
            log_transition("ord-1", "DELAYED", "OUT_FOR_DELIVERY")

        record = caplog.records[-1]
        assert not hasattr(record, "reason")
        assert record.getMessage() == "order ord-1: DELAYED -> OUT_FOR_DELIVERY"

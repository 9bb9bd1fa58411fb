"""Delay monitor: flag orders whose delivery runs past its estimate.

An order is delayed when more whole minutes have passed since pickup
than its estimated duration.  :meth:`DelayMonitor.check_and_update`
reconciles the stored status with that condition in both directions
(it also clears ``DELAYED`` when the estimate is extended), and
:meth:`DelayMonitor.sweep` runs the same check over every live order.
Nothing here schedules itself; call ``sweep`` from a timer or the CLI.

Usage::

    monitor = DelayMonitor(order_repo, settings.delay)
    result = monitor.check_and_update(order_id)   # DelayCheckResult
    if result is DelayCheckResult.CHECK_FAILED:
        ...
    totals = monitor.sweep()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from lastmile.core.state import ORDER_TRANSITIONS, assert_transition, log_transition
from lastmile.core.types import TERMINAL_STATUSES, DelayCheckResult, OrderStatus
from lastmile.models.order import Order, OrderTiming

if TYPE_CHECKING:
    from collections.abc import Callable

    from lastmile.config.settings import DelaySettings
    from lastmile.metrics.collector import MetricsCollector
    from lastmile.repositories.order import OrderRepository

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Pure time arithmetic
# ---------------------------------------------------------------------------


def elapsed_minutes_since(picked_up_at: datetime | None, now: datetime) -> int | None:
    """Whole minutes from *picked_up_at* to *now*, floored; ``None`` if unset."""
    if picked_up_at is None:
        return None
    return int((now - picked_up_at).total_seconds() // 60)


def is_past_estimate(
    picked_up_at: datetime | None,
    estimated_duration: int | None,
    now: datetime,
) -> bool:
    """The authoritative delay condition: elapsed minutes exceed the estimate."""
    if picked_up_at is None or estimated_duration is None:
        return False
    return elapsed_minutes_since(picked_up_at, now) > estimated_duration


def format_minutes(minutes: int) -> str:
    """``H:MM`` once an hour has passed, ``M:00`` below that."""
    hours, mins = divmod(minutes, 60)
    return f"{hours}:{mins:02d}" if hours > 0 else f"{mins}:00"


@dataclass(frozen=True)
class SweepResult:
    checked: int = 0
    delayed: int = 0
    reverted: int = 0
    failed: int = 0
    complete: bool = True

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "delayed": self.delayed,
            "reverted": self.reverted,
            "failed": self.failed,
            "complete": self.complete,
        }


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------


class DelayMonitor:
    """Compute and persist the delayed condition of in-flight orders."""

    def __init__(
        self,
        order_repo: OrderRepository,
        settings: DelaySettings,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = order_repo
        self._settings = settings
        self._metrics = metrics
        self._now = clock or _utcnow

    # -- pure queries -------------------------------------------------------

    def elapsed_minutes_since(
        self,
        picked_up_at: datetime | None,
        now: datetime | None = None,
    ) -> int | None:
        return elapsed_minutes_since(picked_up_at, now or self._now())

    def is_past_estimate(
        self,
        picked_up_at: datetime | None,
        estimated_duration: int | None,
        now: datetime | None = None,
    ) -> bool:
        return is_past_estimate(picked_up_at, estimated_duration, now or self._now())

    def is_order_delayed(
        self,
        picked_up_at: datetime | None,
        estimated_duration: int | None,
        current_status: OrderStatus,
        now: datetime | None = None,
    ) -> bool:
        """Display shortcut: past the estimate, or already marked ``DELAYED``.

        Not authoritative.  A stored ``DELAYED`` status wins here even
        after the estimate was extended; only :meth:`check_and_update`
        clears it.
        """
        if picked_up_at is None or estimated_duration is None:
            return False
        return (
            self.is_past_estimate(picked_up_at, estimated_duration, now)
            or current_status == OrderStatus.DELAYED
        )

    def order_timing(self, order: Order, now: datetime | None = None) -> OrderTiming:
        """Elapsed and remaining minutes for display, never negative."""
        estimate = order.estimated_duration
        if order.picked_up_at is None or estimate is None:
            return OrderTiming(
                elapsed_minutes=0,
                remaining_minutes=estimate or 0,
                is_delayed=False,
                elapsed_display="0:00",
                remaining_display=f"{estimate}:00" if estimate is not None else "N/A",
            )

        now = now or self._now()
        elapsed = elapsed_minutes_since(order.picked_up_at, now)
        remaining = max(0, estimate - elapsed)
        return OrderTiming(
            elapsed_minutes=elapsed,
            remaining_minutes=remaining,
            is_delayed=elapsed > estimate,
            elapsed_display=format_minutes(elapsed),
            remaining_display=format_minutes(remaining),
        )

    # -- check & update -----------------------------------------------------

    def check_and_update(self, order_id: str) -> DelayCheckResult:
        """Reconcile the stored status of *order_id* with its delay condition.

        Returns ``DELAYED`` or ``NOT_DELAYED`` for the computed condition,
        or ``CHECK_FAILED`` if the order could not be read or written.
        Never raises for store failures.
        """
        try:
            order = self._repo.find_by_id(order_id)
            result, _ = self._reconcile(order)
        except Exception:
            log.exception("Delay check failed for order %s", order_id, extra={"order_id": order_id})
            result = DelayCheckResult.CHECK_FAILED
        self._count(result)
        return result

    def sweep(self) -> SweepResult:
        """Check every live order in the monitored statuses, page by page.

        A failure on one order is counted and the sweep continues.  A
        failure loading a page stops the sweep and marks the result
        incomplete.
        """
        checked = delayed = reverted = failed = 0
        complete = True
        after_id: str | None = None

        while True:
            try:
                page = self._repo.find_delay_candidates(
                    self._settings.monitored_statuses,
                    after_id=after_id,
                    limit=self._settings.sweep_batch_size,
                )
            except Exception:
                log.exception("Delay sweep aborted while loading candidates after %s", after_id)
                complete = False
                break

            for order in page:
                checked += 1
                try:
                    result, written = self._reconcile(order)
                except Exception:
                    log.exception(
                        "Delay check failed for order %s", order.id, extra={"order_id": order.id}
                    )
                    result, written = DelayCheckResult.CHECK_FAILED, None
                    failed += 1
                self._count(result)
                if result is DelayCheckResult.DELAYED:
                    delayed += 1
                if written is not None and written is not OrderStatus.DELAYED:
                    reverted += 1

            if len(page) < self._settings.sweep_batch_size:
                break
            after_id = page[-1].id

        totals = SweepResult(
            checked=checked,
            delayed=delayed,
            reverted=reverted,
            failed=failed,
            complete=complete,
        )
        if self._metrics is not None:
            self._metrics.set_gauge("lastmile_sweep_checked", checked)
            self._metrics.set_gauge("lastmile_sweep_delayed", delayed)
        log.info(
            "Delay sweep: checked=%d delayed=%d reverted=%d failed=%d",
            checked,
            delayed,
            reverted,
            failed,
            extra={"event": "delay_sweep", **totals.to_dict()},
        )
        return totals

    # -- internals ----------------------------------------------------------

    def _reconcile(self, order: Order | None) -> tuple[DelayCheckResult, OrderStatus | None]:
        """Return the computed condition and the status written, if any."""
        if order is None or order.is_terminal:
            return DelayCheckResult.NOT_DELAYED, None
        if order.picked_up_at is None or order.estimated_duration is None:
            return DelayCheckResult.NOT_DELAYED, None

        delayed = self.is_past_estimate(order.picked_up_at, order.estimated_duration)
        result = DelayCheckResult.DELAYED if delayed else DelayCheckResult.NOT_DELAYED
        if order.status in TERMINAL_STATUSES:
            # Final status without its timestamp: report, never rewrite
            return result, None

        target: OrderStatus | None = None
        if delayed and order.status != OrderStatus.DELAYED:
            target = OrderStatus.DELAYED
        elif not delayed and order.status == OrderStatus.DELAYED:
            target = self._settings.revert_status

        written = None
        if target is not None and self._transition(order, target):
            written = target
        return result, written

    def _transition(self, order: Order, target: OrderStatus) -> bool:
        assert_transition(order.status, target, ORDER_TRANSITIONS)
        updated = self._repo.transition_status(order.id, order.status, target)
        if updated is None:
            log.info(
                "Order %s changed concurrently; not moving %s -> %s",
                order.id,
                order.status.value,
                target.value,
                extra={"order_id": order.id},
            )
            return False

        reason = "past estimated duration" if target is OrderStatus.DELAYED else "within estimate"
        log_transition(order.id, order.status, target, reason=reason)
        if self._metrics is not None:
            self._metrics.increment(
                "lastmile_delay_transitions_total",
                labels={"to_status": target.value},
            )
        return True

    def _count(self, result: DelayCheckResult) -> None:
        if self._metrics is not None:
            self._metrics.increment(
                "lastmile_delay_checks_total",
                labels={"result": result.value},
            )

"""Delay subcommands.

Usage::

    lastmile -c config.yaml delay check <order-id>
    lastmile -c config.yaml delay sweep
    lastmile -c config.yaml delay timing <order-id>

``delay sweep`` is meant to be run periodically by cron or a systemd
timer.  It exits 1 when the sweep could not finish.
"""

from __future__ import annotations

import sys

from lastmile.cli.commands.common import build_container, emit, fail_with_problem
from lastmile.core.errors import OrderNotFound
from lastmile.core.types import DelayCheckResult


def run_delay(config, args) -> None:
    """Dispatch to the appropriate delay sub-handler."""
    sub = getattr(args, "delay_command", None)
    if sub not in {"check", "sweep", "timing"}:
        print("lastmile: error: expected check, sweep or timing", file=sys.stderr)
        sys.exit(1)

    container = build_container(config)
    monitor = container.delay_monitor

    if sub == "check":
        result = monitor.check_and_update(args.order_id)
        emit({"order_id": args.order_id, "result": result.value})
        if result is DelayCheckResult.CHECK_FAILED:
            sys.exit(1)
    elif sub == "sweep":
        totals = monitor.sweep()
        emit(totals.to_dict())
        if not totals.complete:
            sys.exit(1)
    else:
        order = container.orders.find_by_id(args.order_id)
        if order is None:
            fail_with_problem(
                OrderNotFound(f"Order {args.order_id} not found", order_id=args.order_id),
            )
            return
        emit({"order_id": order.id, **monitor.order_timing(order).to_dict()})

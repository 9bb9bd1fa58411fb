"""Verification subcommands: issue, check and show delivery credentials.

Usage::

    lastmile -c config.yaml verification generate <order-id>
    lastmile -c config.yaml verification verify-otp <order-id> <otp>
    lastmile -c config.yaml verification verify-qr <payload>
    lastmile -c config.yaml verification show <order-id>

A rejected verification prints its problem document and exits with
status 2.
"""

from __future__ import annotations

import sys

from lastmile.cli.commands.common import build_container, emit, fail_with_problem
from lastmile.core.errors import DeliveryProblem
from lastmile.models.order import VerificationDetails


def run_verification(config, args) -> None:
    """Dispatch to the appropriate verification sub-handler."""
    sub = getattr(args, "verification_command", None)
    if sub not in {"generate", "verify-otp", "verify-qr", "show"}:
        print("lastmile: error: expected generate, verify-otp, verify-qr or show", file=sys.stderr)
        sys.exit(1)

    service = build_container(config).verification_service

    try:
        if sub == "generate":
            emit(service.generate(args.order_id).to_dict())
        elif sub == "verify-otp":
            order = service.verify_otp(args.order_id, args.otp)
            emit(VerificationDetails.from_order(order).to_dict())
        elif sub == "verify-qr":
            order = service.verify_qr(args.payload)
            emit(VerificationDetails.from_order(order).to_dict())
        else:
            emit(service.get_verification(args.order_id).to_dict())
    except DeliveryProblem as problem:
        fail_with_problem(problem)

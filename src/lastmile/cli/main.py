"""lastmile command-line entry point.

Usage::

    lastmile -c /etc/lastmile/config.yaml --validate-only
    lastmile -c config.yaml db status
    lastmile -c config.yaml db migrate
    lastmile -c config.yaml verification generate <order-id>
    lastmile -c config.yaml verification verify-otp <order-id> <otp>
    lastmile -c config.yaml verification verify-qr 'DELIVERY:<order-id>:<otp>'
    lastmile -c config.yaml verification show <order-id>
    lastmile -c config.yaml delay check <order-id>
    lastmile -c config.yaml delay sweep
    lastmile -c config.yaml delay timing <order-id>
    python -m lastmile -c config.yaml delay sweep
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from lastmile import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lastmile",
        description="lastmile: proof-of-delivery verification and delay tracking",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # db
    db_parser = subparsers.add_parser("db", help="Database management")
    db_sub = db_parser.add_subparsers(dest="db_command")
    db_sub.add_parser("status", help="Check database connectivity and schema")
    db_sub.add_parser("migrate", help="Apply the bundled schema")

    # verification
    ver_parser = subparsers.add_parser("verification", help="Delivery credentials")
    ver_sub = ver_parser.add_subparsers(dest="verification_command")
    p = ver_sub.add_parser("generate", help="Issue a new OTP and QR payload")
    p.add_argument("order_id")
    p = ver_sub.add_parser("verify-otp", help="Verify an order with its OTP")
    p.add_argument("order_id")
    p.add_argument("otp")
    p = ver_sub.add_parser("verify-qr", help="Verify an order with a scanned QR payload")
    p.add_argument("payload")
    p = ver_sub.add_parser("show", help="Show verification fields of an order")
    p.add_argument("order_id")

    # delay
    delay_parser = subparsers.add_parser("delay", help="Delay monitoring")
    delay_sub = delay_parser.add_subparsers(dest="delay_command")
    p = delay_sub.add_parser("check", help="Check and update one order")
    p.add_argument("order_id")
    delay_sub.add_parser("sweep", help="Check every in-flight order")
    p = delay_sub.add_parser("timing", help="Show elapsed and remaining time")
    p.add_argument("order_id")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"lastmile: error: {message}", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, dispatches."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- resolve config path ---
    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    try:
        from lastmile.config import ConfigValidationError, LastmileConfig

        config = LastmileConfig(
            config_file=str(config_path),
            schema_file="bundled",
        )
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(1)

    # -- replace bootstrap logging with structured logging ---
    from lastmile.logging import configure_logging

    configure_logging(config.settings.logging)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    command = args.command

    if command == "db":
        from lastmile.cli.commands.db import run_db

        run_db(config, args)
    elif command == "verification":
        from lastmile.cli.commands.verification import run_verification

        run_verification(config, args)
    elif command == "delay":
        from lastmile.cli.commands.delay import run_delay

        run_delay(config, args)
    else:
        parser.print_help(sys.stderr)
        sys.exit(1)


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    print(f"configuration OK: {config._config_path}")  # noqa: SLF001
    print(f"  database      {s.database.user}@{s.database.host}:{s.database.port}/{s.database.database}")
    print(
        f"  verification  otp_length={s.verification.otp_length} "
        f"ttl={s.verification.otp_ttl_minutes}m tag={s.verification.qr_tag}"
    )
    print(
        f"  delay         statuses={','.join(st.value for st in s.delay.monitored_statuses)} "
        f"batch={s.delay.sweep_batch_size}"
    )
    print(f"  logging       level={s.logging.level} format={s.logging.format}")

"""Database management subcommands.

Usage::

    lastmile -c config.yaml db status
    lastmile -c config.yaml db migrate
"""

from __future__ import annotations

import logging
import sys

from lastmile.cli.commands.common import emit

log = logging.getLogger(__name__)


def run_db(config, args) -> None:
    """Handle db subcommands."""
    if args.db_command == "status":
        _db_status(config)
    elif args.db_command == "migrate":
        _db_migrate(config)
    else:
        print("lastmile: error: expected 'status' or 'migrate'", file=sys.stderr)
        sys.exit(1)


def _db_status(config) -> None:
    """Check database connectivity and that the orders table exists."""
    from lastmile.db import init_database, schema_status

    try:
        status = schema_status(init_database(config.settings.database))
    except Exception as exc:
        log.debug("Database status check failed", exc_info=True)
        print(f"lastmile: error: database unreachable: {exc}", file=sys.stderr)
        sys.exit(1)

    emit(status)
    if not all(status.values()):
        sys.exit(1)


def _db_migrate(config) -> None:
    """Apply the bundled schema (idempotent)."""
    from lastmile.db import apply_schema, init_database

    try:
        db = init_database(config.settings.database)
        apply_schema(db)
    except Exception as exc:
        log.debug("Schema migration failed", exc_info=True)
        print(f"lastmile: error: migration failed: {exc}", file=sys.stderr)
        sys.exit(1)

    emit({"migrated": True})

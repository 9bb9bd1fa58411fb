"""Helpers shared by the CLI subcommands."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lastmile.app.context import Container
    from lastmile.core.errors import DeliveryProblem

# Exit code for a rejected operation, as opposed to 1 for a failure
EXIT_PROBLEM = 2


def build_container(config) -> Container:
    """Connect to the database and wire services, exiting on failure."""
    from lastmile.app.context import Container
    from lastmile.db import init_database

    try:
        db = init_database(config.settings.database)
    except Exception as exc:
        print(f"lastmile: error: database initialisation failed: {exc}", file=sys.stderr)
        sys.exit(1)
    return Container(db, config.settings)


def emit(data: Any) -> None:  # noqa: ANN401
    """Write *data* to stdout as indented JSON."""
    print(json.dumps(data, indent=2, default=str))


def fail_with_problem(problem: DeliveryProblem) -> None:
    """Print a problem document to stdout and exit with ``EXIT_PROBLEM``."""
    emit(problem.to_dict())
    sys.exit(EXIT_PROBLEM)

"""Connection setup and schema management for the ``orders`` table.

The pool is a PyPGKit :class:`Database` singleton.  Schema changes go
through :func:`apply_schema` whether they are triggered on start-up
(``database.auto_setup``) or by ``lastmile db migrate``, so both paths
run the same idempotent ``schema.sql``.

Usage::

    from lastmile.db import init_database, schema_status

    db = init_database(config.settings.database)
    schema_status(db)   # {"connected": True, "orders_table": True}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pypgkit import Database, DatabaseConfig, SchemaManager

if TYPE_CHECKING:
    from lastmile.config.settings import DatabaseSettings

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
ORDERS_TABLE = "orders"

# DatabaseSettings attributes handed to the pool unchanged
_POOL_FIELDS = (
    "host",
    "port",
    "database",
    "user",
    "password",
    "sslmode",
    "min_connections",
    "max_connections",
    "connection_timeout",
)

log = logging.getLogger(__name__)


def _settings_to_config(settings: DatabaseSettings) -> DatabaseConfig:
    return DatabaseConfig(**{name: getattr(settings, name) for name in _POOL_FIELDS})


def init_database(settings: DatabaseSettings) -> Database:
    """Connect the pool, then bring the schema in line with ``auto_setup``.

    A second call returns the pool that is already open.  With
    ``auto_setup`` off nothing is written; a missing ``orders`` table is
    only reported, since the service cannot work until someone runs
    ``db migrate``.
    """
    if Database.is_initialized():
        return Database.get_instance()

    log.info(
        "Connecting to order store %s on %s:%s as %s",
        settings.database,
        settings.host,
        settings.port,
        settings.user,
    )
    db = Database.init(
        config=_settings_to_config(settings),
        schema_path=None,
        auto_setup=False,
        interactive=False,
    )

    if settings.auto_setup:
        apply_schema(db)
    elif not db.table_exists(ORDERS_TABLE):
        log.warning(
            "Table %r is missing and database.auto_setup is off; "
            "run 'lastmile db migrate' before serving requests",
            ORDERS_TABLE,
        )
    return db


def apply_schema(db: Database) -> None:
    """Run the bundled ``schema.sql`` against *db*."""
    SchemaManager(db).execute_sql_file(SCHEMA_PATH)
    log.info("Order schema applied from %s", SCHEMA_PATH.name)


def schema_status(db: Database) -> dict[str, bool]:
    """Report pool health and whether the ``orders`` table exists."""
    return {
        "connected": bool(db.health_check()),
        "orders_table": bool(db.table_exists(ORDERS_TABLE)),
    }

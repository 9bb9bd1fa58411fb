"""Database subsystem for lastmile.

Public API::

    from lastmile.db import apply_schema, init_database, schema_status
"""

from lastmile.db.init import apply_schema, init_database, schema_status

__all__ = [
    "apply_schema",
    "init_database",
    "schema_status",
]

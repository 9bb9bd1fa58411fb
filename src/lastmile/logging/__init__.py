"""Logging subsystem for lastmile.

Public API::

    from lastmile.logging import configure_logging

    configure_logging(settings.logging)
"""

from lastmile.logging.setup import configure_logging

__all__ = ["configure_logging"]

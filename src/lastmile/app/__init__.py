"""Application wiring for lastmile.

Public API::

    from lastmile.app import Container
"""

from lastmile.app.context import Container

__all__ = ["Container"]

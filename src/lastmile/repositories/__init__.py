"""Repository classes for the lastmile persistence layer.

Each repository extends :class:`pypgkit.BaseRepository` with custom
query methods for the delivery domain.
"""

from lastmile.repositories.order import OrderRepository

__all__ = [
    "OrderRepository",
]

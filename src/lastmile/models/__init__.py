"""Entity models for the lastmile persistence layer.

All models are frozen dataclasses.  Use :func:`dataclasses.replace`
for modifications (copy-on-write).
"""

from lastmile.models.order import Order, OrderTiming, VerificationDetails

__all__ = [
    "Order",
    "OrderTiming",
    "VerificationDetails",
]

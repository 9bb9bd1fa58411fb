"""Delivery service layer.

Each service encapsulates business logic for one concern and delegates
persistence to the repository layer.
"""

from lastmile.services.delay import DelayMonitor, SweepResult
from lastmile.services.verification import VerificationService

__all__ = [
    "DelayMonitor",
    "SweepResult",
    "VerificationService",
]

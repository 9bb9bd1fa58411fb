"""Dependency injection container for lastmile.

Created once by the CLI (or an embedding process) after the database
has been initialised.

Usage::

    from lastmile.app.context import Container

    c = Container(db, get_config().settings)
    c.verification_service.verify_otp(order_id, otp)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lastmile.metrics.collector import MetricsCollector
from lastmile.repositories import OrderRepository
from lastmile.services import DelayMonitor, VerificationService

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from pypgkit import Database

    from lastmile.config.settings import LastmileSettings


class Container:
    """Application-wide dependency container.

    Holds a reference to the :class:`Database` singleton, the order
    repository and both services.  Services share one metrics collector
    when metrics are enabled.
    """

    def __init__(
        self,
        db: Database,
        settings: LastmileSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.db: Database = db
        self.settings: LastmileSettings = settings

        self.metrics_collector: MetricsCollector | None = None
        if settings.metrics.enabled:
            self.metrics_collector = MetricsCollector()

        # Repositories
        self.orders: OrderRepository = OrderRepository(db)

        # Services
        self.verification_service: VerificationService = VerificationService(
            self.orders,
            settings.verification,
            metrics=self.metrics_collector,
            clock=clock,
        )
        self.delay_monitor: DelayMonitor = DelayMonitor(
            self.orders,
            settings.delay,
            metrics=self.metrics_collector,
            clock=clock,
        )

"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders are
what the application actually reads.

Access pattern::

    from lastmile.config import get_config

    ttl = get_config().settings.verification.otp_ttl_minutes
"""

from __future__ import annotations

from dataclasses import dataclass

from lastmile.core.types import OrderStatus

_DEFAULT_ACTIVE_STATUSES = (
    OrderStatus.PICKED_UP,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELAYED,
)


def _statuses(values, default: tuple[OrderStatus, ...]) -> tuple[OrderStatus, ...]:
    if values is None:
        return default
    return tuple(OrderStatus(v) for v in values)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VerificationSettings:
    """Delivery credential generation and checking."""

    otp_length: int
    otp_ttl_minutes: int
    qr_tag: str
    eligible_statuses: tuple[OrderStatus, ...]


def _build_verification(data: dict | None) -> VerificationSettings:
    d = data or {}
    return VerificationSettings(
        otp_length=d.get("otp_length", 6),
        otp_ttl_minutes=d.get("otp_ttl_minutes", 30),
        qr_tag=d.get("qr_tag", "DELIVERY"),
        eligible_statuses=_statuses(d.get("eligible_statuses"), _DEFAULT_ACTIVE_STATUSES),
    )


# ---------------------------------------------------------------------------
# Delay monitoring
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DelaySettings:
    """Which orders the delay sweep visits and where reverted orders land."""

    monitored_statuses: tuple[OrderStatus, ...]
    revert_status: OrderStatus
    sweep_batch_size: int


def _build_delay(data: dict | None) -> DelaySettings:
    d = data or {}
    return DelaySettings(
        monitored_statuses=_statuses(d.get("monitored_statuses"), _DEFAULT_ACTIVE_STATUSES),
        revert_status=OrderStatus(d.get("revert_status", OrderStatus.OUT_FOR_DELIVERY.value)),
        sweep_batch_size=d.get("sweep_batch_size", 500),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format, security events)."""

    level: str
    format: str
    security_events: bool
    security_log_file: str | None
    max_file_size_bytes: int
    backup_count: int


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "json"),
        security_events=d.get("security_events", True),
        security_log_file=d.get("security_log_file"),
        max_file_size_bytes=d.get("max_file_size_bytes", 104857600),
        backup_count=d.get("backup_count", 10),
    )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """PostgreSQL connection and pool settings."""

    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str
    min_connections: int
    max_connections: int
    connection_timeout: float
    auto_setup: bool


def _build_database(data: dict | None) -> DatabaseSettings:
    d = data or {}
    return DatabaseSettings(
        host=d.get("host", "localhost"),
        port=d.get("port", 5432),
        database=d["database"],
        user=d["user"],
        password=d.get("password", ""),
        sslmode=d.get("sslmode", "prefer"),
        min_connections=d.get("min_connections", 2),
        max_connections=d.get("max_connections", 10),
        connection_timeout=d.get("connection_timeout", 30.0),
        auto_setup=d.get("auto_setup", False),
    )


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricsSettings:
    enabled: bool


def _build_metrics(data: dict | None) -> MetricsSettings:
    d = data or {}
    return MetricsSettings(enabled=d.get("enabled", True))


# ---------------------------------------------------------------------------
# Root settings aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LastmileSettings:
    database: DatabaseSettings
    logging: LoggingSettings
    verification: VerificationSettings
    delay: DelaySettings
    metrics: MetricsSettings


def build_settings(data: dict) -> LastmileSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`LastmileConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return LastmileSettings(
        database=_build_database(data.get("database")),
        logging=_build_logging(data.get("logging")),
        verification=_build_verification(data.get("verification")),
        delay=_build_delay(data.get("delay")),
        metrics=_build_metrics(data.get("metrics")),
    )

"""Configuration subsystem for lastmile.

Public API::

    from lastmile.config import get_config, LastmileConfig

    # At startup (CLI only):
    LastmileConfig(config_file="config.yaml")

    # Everywhere else:
    cfg = get_config()
    ttl = cfg.settings.verification.otp_ttl_minutes   # typed access
    batch = cfg.get("delay.sweep_batch_size")         # dynamic dot-path
"""

from lastmile.config.lastmile_config import (
    ConfigValidationError,
    LastmileConfig,
    get_config,
)
from lastmile.config.settings import (
    DatabaseSettings,
    DelaySettings,
    LastmileSettings,
    LoggingSettings,
    MetricsSettings,
    VerificationSettings,
)

__all__ = [
    "ConfigValidationError",
    "DatabaseSettings",
    "DelaySettings",
    "LastmileConfig",
    "LastmileSettings",
    "LoggingSettings",
    "MetricsSettings",
    "VerificationSettings",
    "get_config",
]

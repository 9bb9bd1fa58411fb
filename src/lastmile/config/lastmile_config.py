"""lastmile configuration loader built on ConfigKit.

Lifecycle::

    # 1. CLI creates the singleton (once, at startup)
    LastmileConfig(config_file="/etc/lastmile/config.yaml")

    # 2. Any module retrieves it afterwards
    from lastmile.config import get_config
    cfg = get_config()
    cfg.settings.verification.otp_ttl_minutes  # typed access

    # 3. Dynamic access
    cfg.get("delay.sweep_batch_size", default=500)
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

from configkit import ConfigKit, ConfigKitMeta

from lastmile.config.settings import LastmileSettings, build_settings
from lastmile.core.state import ORDER_TRANSITIONS, can_transition
from lastmile.core.types import TERMINAL_STATUSES, OrderStatus

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton reference
# ---------------------------------------------------------------------------
_instance: LastmileConfig | None = None


def get_config() -> LastmileConfig:
    """Return the initialised configuration singleton.

    Raises :class:`RuntimeError` if :class:`LastmileConfig` has not been
    created yet (i.e. the CLI entry point has not run).
    """
    if _instance is None:
        msg = (
            "Configuration not initialised. "
            "LastmileConfig must be created with config_file= before calling get_config()."
        )
        raise RuntimeError(msg)
    return _instance


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when cross-field validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class LastmileConfig(ConfigKit):
    """Central configuration for lastmile.

    Subclasses :class:`configkit.ConfigKit`.  The JSON schema is bundled
    at ``config/schema.json``; users supply only ``config_file``.

    After construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(
        self,
        *,
        config_file: str | Path,
        schema_file: str | Path | None = None,  # noqa: ARG002
    ) -> None:
        """Initialise the configuration singleton.

        Parameters
        ----------
        config_file:
            Path to the YAML/JSON configuration file.
        schema_file:
            Ignored.  Exists only to satisfy the
            :class:`ConfigKitMeta` singleton guard.

        """
        global _instance  # noqa: PLW0603

        super().__init__(
            config_file=config_file,
            schema_file=_SCHEMA_PATH,
        )

        self._settings: LastmileSettings = build_settings(self.data)
        _instance = self

    # -- lifecycle overrides ------------------------------------------------

    def _load(self) -> None:
        """Load config file then resolve ``${VAR}`` env-var references.

        Runs env-var resolution **before** schema validation so that
        substituted values (e.g. ``${LOG_LEVEL:-INFO}``) are checked
        against enum constraints in the schema.
        """
        super()._load()
        _resolve_env_vars(self._data)

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> LastmileSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self) -> None:
        """Semantic & cross-field validation.

        Called automatically by ConfigKit **after** schema validation
        passes, so every status name seen here is already known.
        """
        errors: list[str] = []
        warnings: list[str] = []

        database = self.data.get("database") or {}
        verification = self.data.get("verification") or {}
        delay = self.data.get("delay") or {}

        # -- database --
        min_conn = database.get("min_connections", 2)
        max_conn = database.get("max_connections", 10)
        if min_conn > max_conn:
            errors.append(
                f"database.min_connections ({min_conn}) must be <= "
                f"database.max_connections ({max_conn})",
            )

        # -- verification --
        for name in verification.get("eligible_statuses") or []:
            if OrderStatus(name) in TERMINAL_STATUSES:
                errors.append(
                    f"verification.eligible_statuses must not contain terminal status '{name}'",
                )

        # -- delay --
        monitored = delay.get("monitored_statuses")
        for name in monitored or []:
            if OrderStatus(name) in TERMINAL_STATUSES:
                errors.append(
                    f"delay.monitored_statuses must not contain terminal status '{name}'",
                )
        if monitored is not None and not monitored:
            errors.append("delay.monitored_statuses must not be empty")
        elif monitored is not None and OrderStatus.DELAYED.value not in monitored:
            warnings.append(
                "delay.monitored_statuses does not include DELAYED; "
                "sweeps will never revert orders whose estimate was extended",
            )

        revert = delay.get("revert_status")
        if revert is not None:
            target = OrderStatus(revert)
            if target in TERMINAL_STATUSES or not can_transition(
                OrderStatus.DELAYED, target, ORDER_TRANSITIONS
            ):
                errors.append(
                    f"delay.revert_status '{revert}' is not a live status "
                    "that DELAYED orders can return to",
                )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    # -- helpers ------------------------------------------------------------

    def reload_settings(self) -> LastmileSettings:
        """Re-read the config file and rebuild settings.

        Does not reset the singleton.  Re-reads the file, resolves env
        vars, and returns a fresh :class:`LastmileSettings` tree.
        """
        new_data = self._parse_config(self._config_path)
        _resolve_env_vars(new_data)
        return build_settings(new_data)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton -- testing only."""
        global _instance  # noqa: PLW0603
        _instance = None
        ConfigKitMeta.reset()

    def __repr__(self) -> str:
        return f"<LastmileConfig config_file={self._config_path}>"

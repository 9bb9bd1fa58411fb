"""Tests for the typed settings builders in lastmile.config.settings."""

from __future__ import annotations

import dataclasses

import pytest

from lastmile.config.settings import build_settings
from lastmile.core.types import OrderStatus

_MINIMAL = {"database": {"database": "lastmile", "user": "lastmile"}}


class TestDefaults:
    def test_verification_defaults(self):
        s = build_settings(_MINIMAL).verification

        assert s.otp_length == 6
        assert s.otp_ttl_minutes == 30
        assert s.qr_tag == "DELIVERY"
        assert s.eligible_statuses == (
            OrderStatus.PICKED_UP,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELAYED,
        )

    def test_delay_defaults(self):
        s = build_settings(_MINIMAL).delay

        assert OrderStatus.DELAYED in s.monitored_statuses
        assert s.revert_status is OrderStatus.OUT_FOR_DELIVERY
        assert s.sweep_batch_size == 500

    def test_logging_defaults(self):
        s = build_settings(_MINIMAL).logging

        assert s.level == "INFO"
        assert s.format == "json"
        assert s.security_events is True
        assert s.security_log_file is None

    def test_database_defaults(self):
        s = build_settings(_MINIMAL).database

        assert (s.host, s.port, s.sslmode) == ("localhost", 5432, "prefer")
        assert s.password == ""
        assert s.auto_setup is False

    def test_metrics_enabled_by_default(self):
        assert build_settings(_MINIMAL).metrics.enabled is True


class TestOverrides:
    def test_status_names_become_enums(self):
        data = dict(
            _MINIMAL,
            verification={"eligible_statuses": ["IN_TRANSIT"]},
            delay={"monitored_statuses": ["IN_TRANSIT", "DELAYED"], "revert_status": "IN_TRANSIT"},
        )

        settings = build_settings(data)

        assert settings.verification.eligible_statuses == (OrderStatus.IN_TRANSIT,)
        assert settings.delay.monitored_statuses == (OrderStatus.IN_TRANSIT, OrderStatus.DELAYED)
        assert settings.delay.revert_status is OrderStatus.IN_TRANSIT

    def test_database_required_fields(self):
        with pytest.raises(KeyError):
            build_settings({"database": {"user": "u"}})

    def test_settings_are_frozen(self):
        settings = build_settings(_MINIMAL)

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.verification.otp_length = 8  # type: ignore[misc]

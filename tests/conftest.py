"""Root conftest for the lastmile test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Minimal config data shared by multiple test modules
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_config_data() -> dict:
    """Return a dict containing the minimum required config fields."""
    return {
        "database": {"database": "lastmile_test", "user": "testuser"},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, minimal_config_data: dict) -> Path:
    """Write *minimal_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(minimal_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


# ---------------------------------------------------------------------------
# ConfigKit singleton cleanup, autouse so every test gets a fresh slate
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the LastmileConfig singleton before and after every test."""
    from lastmile.config.lastmile_config import LastmileConfig

    LastmileConfig.reset()
    yield
    LastmileConfig.reset()


# ---------------------------------------------------------------------------
# Logger state cleanup; configure_logging() detaches "lastmile" from root
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def restore_lastmile_loggers():
    """Undo handler, propagation and disable changes made by configure_logging."""
    import logging

    yield
    for name in ("lastmile", "lastmile.security"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.disabled = False
        logger.setLevel(logging.NOTSET)

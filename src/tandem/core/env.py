"""Helpers for environment overrides shared across the package."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def resolve_config_path(default_path: Path) -> Path:
    """Pick config path based on environment overrides."""

    env_path = os.environ.get("TANDEM_CONFIG_PATH")
    if env_path:
        return Path(env_path)
    env_dir = os.environ.get("TANDEM_CONFIG_DIR")
    if env_dir:
        return Path(env_dir) / "settings.yaml"
    return default_path


def resolve_log_level() -> Optional[str]:
    value = os.environ.get("LOGLEVEL", "").strip()
    return value.upper() or None

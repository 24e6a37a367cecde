"""Configuration management module."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .defaults import DEFAULT_CONFIG
from tandem.audio.resampling import MAX_RESAMPLE_QUALITY, MIN_RESAMPLE_QUALITY
from tandem.core.env import resolve_config_path

logger = logging.getLogger(__name__)


def merge_sections(defaults: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay `user` on `defaults`, section by section.

    A user section that is not a mapping where the default is one is
    dropped, so getters can always call `.get` on a section.
    """
    merged: Dict[str, Any] = copy.deepcopy(defaults)
    for key, value in user.items():
        default = merged.get(key)
        if isinstance(default, dict):
            if isinstance(value, dict):
                merged[key] = merge_sections(default, value)
            else:
                logger.warning("Ignoring config section %s: expected a mapping", key)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


@dataclass
class SettingsManager:
    """YAML configuration on top of `DEFAULT_CONFIG`."""

    config_path: Path = Path("config/settings.yaml")

    def __post_init__(self) -> None:
        self.config_path = resolve_config_path(Path(self.config_path))
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if self.config_path.exists():
            with self.config_path.open("r", encoding="utf-8") as file:
                user_config = yaml.safe_load(file) or {}
            if not isinstance(user_config, dict):
                logger.warning("Ignoring malformed config file %s", self.config_path)
                user_config = {}
            self._data = merge_sections(DEFAULT_CONFIG, user_config)
        else:
            self._data = copy.deepcopy(DEFAULT_CONFIG)

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as file:
            yaml.safe_dump(self._data, file, allow_unicode=False, sort_keys=True)

    def get_raw(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def get_resample_quality(self) -> int:
        buffers = self._data.get("buffers", {})
        default = DEFAULT_CONFIG["buffers"]["resample_quality"]
        try:
            value = int(buffers.get("resample_quality", default))
        except (TypeError, ValueError):
            return default
        return max(MIN_RESAMPLE_QUALITY, min(MAX_RESAMPLE_QUALITY, value))

    def set_resample_quality(self, value: int) -> None:
        buffers = self._data.setdefault("buffers", {})
        buffers["resample_quality"] = max(MIN_RESAMPLE_QUALITY, min(MAX_RESAMPLE_QUALITY, int(value)))

    def get_ffmpeg_fallback(self) -> bool:
        buffers = self._data.get("buffers", {})
        return bool(buffers.get("ffmpeg_fallback", DEFAULT_CONFIG["buffers"]["ffmpeg_fallback"]))

    def set_ffmpeg_fallback(self, enabled: bool) -> None:
        buffers = self._data.setdefault("buffers", {})
        buffers["ffmpeg_fallback"] = bool(enabled)

    def get_block_size(self) -> int:
        playback = self._data.get("playback", {})
        default = DEFAULT_CONFIG["playback"]["block_size"]
        try:
            value = int(playback.get("block_size", default))
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default

    def set_block_size(self, value: int) -> None:
        playback = self._data.setdefault("playback", {})
        playback["block_size"] = max(1, int(value))

    def get_output_device(self) -> Optional[int]:
        playback = self._data.get("playback", {})
        value = playback.get("device")
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def set_output_device(self, device: Optional[int]) -> None:
        playback = self._data.setdefault("playback", {})
        playback["device"] = None if device is None else int(device)

    def get_log_level(self) -> str:
        logging_cfg = self._data.get("logging", {})
        value = logging_cfg.get("level", DEFAULT_CONFIG["logging"]["level"])
        return str(value).upper()

    def set_log_level(self, level: str) -> None:
        logging_cfg = self._data.setdefault("logging", {})
        logging_cfg["level"] = str(level).upper()

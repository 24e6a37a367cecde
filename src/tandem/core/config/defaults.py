"""Default configuration values."""

from __future__ import annotations

from typing import Any, Dict

from tandem.audio.types import DEFAULT_RESAMPLE_QUALITY

DEFAULT_CONFIG: Dict[str, Any] = {
    "buffers": {
        "resample_quality": DEFAULT_RESAMPLE_QUALITY,
        "ffmpeg_fallback": True,
    },
    "playback": {
        "block_size": 1024,
        "device": None,
    },
    "logging": {
        "level": "WARNING",
    },
}

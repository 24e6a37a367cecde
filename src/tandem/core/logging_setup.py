"""Logging configuration for applications embedding tandem."""

from __future__ import annotations

import logging
from typing import Optional

from tandem.core.env import resolve_log_level

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level_override: Optional[str] = None) -> int:
    """Install a stream handler on the root logger and return the level used.

    `LOGLEVEL` from the environment wins over `level_override`; the default
    is WARNING. Unknown level names fall back to WARNING.
    """
    level_name = (resolve_log_level() or level_override or "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return level

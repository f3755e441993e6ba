from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_LEVEL_ENV = "NSEVENTS_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def resolve_level(value: Optional[Union[str, int]], default: int = logging.INFO) -> int:
    """Turn ``"debug"``, ``"10"`` or ``10`` into a logging level; unknown names give ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def configure_logging(level: Optional[Union[str, int]] = None, default_level: int = logging.INFO) -> int:
    """Configure the root logger for applications embedding the emitter.

    An explicit ``level`` wins over NSEVENTS_LOG_LEVEL, which wins over
    ``default_level``. Returns the level that was applied.
    """
    chosen = level if level is not None else os.getenv(LOG_LEVEL_ENV)
    resolved = resolve_level(chosen, default_level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("nsevents").setLevel(resolved)
    return resolved

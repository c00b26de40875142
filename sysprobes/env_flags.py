from __future__ import annotations

import logging
from typing import Mapping, Optional

_TRUTHY = {"1", "true", "yes", "on"}

DEBUG_FLAG = "SYSPROBES_DEBUG"
LOG_LEVEL = "SYSPROBES_LOG_LEVEL"


def env_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def log_level(environ: Mapping[str, str]) -> int:
    """Resolve the package log level from the environment.

    An explicit ``SYSPROBES_LOG_LEVEL`` wins; otherwise ``SYSPROBES_DEBUG``
    switches to DEBUG and everything else stays at WARNING.
    """

    explicit = environ.get(LOG_LEVEL)
    if explicit:
        level = logging.getLevelName(explicit.strip().upper())
        if isinstance(level, int):
            return level
    if env_truthy(environ.get(DEBUG_FLAG)):
        return logging.DEBUG
    return logging.WARNING

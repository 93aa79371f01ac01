"""Root logger setup for the NotesFlow client.

Environment overrides win over saved preferences:
  - NOTESFLOW_LOG_LEVEL: explicit level name or number
  - NOTESFLOW_DEBUG: truthy -> DEBUG
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "NOTESFLOW_LOG_LEVEL"
DEBUG_ENV = "NOTESFLOW_DEBUG"

# Connection chatter from requests' pool.
_NOISY_LOGGERS = ("urllib3",)


def env_level() -> Optional[int]:
    """Level forced through the environment, ``None`` when not forced."""
    raw = (os.getenv(LEVEL_ENV) or "").strip()
    if raw:
        if raw.isdigit():
            return int(raw)
        named = logging.getLevelName(raw.upper())
        return named if isinstance(named, int) else logging.INFO
    if (os.getenv(DEBUG_ENV) or "").strip().lower() in {"1", "true", "yes", "on"}:
        return logging.DEBUG
    return None


def env_requests_debug() -> bool:
    """Return True if environment variables force DEBUG logging."""
    level = env_level()
    return level is not None and level <= logging.DEBUG


def configure_root() -> int:
    """Install the compact console format once and return the effective level."""
    level = env_level() or logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(level)
    _quiet_transport(level)
    return level


def apply_preferences(debug_enabled: bool) -> int:
    """Apply the saved ``debug_logging`` preference unless the environment overrides it."""
    level = env_level()
    if level is None:
        level = logging.DEBUG if debug_enabled else logging.INFO
    logging.getLogger().setLevel(level)
    _quiet_transport(level)
    return level


def _quiet_transport(level: int) -> None:
    # Per-connection DEBUG lines only when the environment asks for them.
    transport_level = level if env_requests_debug() else max(level, logging.INFO)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

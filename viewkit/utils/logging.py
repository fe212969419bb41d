"""Root logger setup for applications built on viewkit.

Environment overrides, strongest first:
  - ``VIEWKIT_LOG_LEVEL``: explicit level, by name (``"warning"``) or number.
  - ``VIEWKIT_DEBUG`` / ``VIEWKIT_DEBUG_LOGGING``: truthy forces DEBUG.

A level forced by the environment wins over the ``debug_logging`` setting.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "VIEWKIT_LOG_LEVEL"
DEBUG_ENV = ("VIEWKIT_DEBUG", "VIEWKIT_DEBUG_LOGGING")

_TRUTHY = {"1", "true", "yes", "on"}

LevelLike = Union[int, str]


def parse_level(value: Optional[LevelLike], fallback: int = logging.INFO) -> int:
    """Turn ``"debug"``, ``"10"`` or ``10`` into a logging level number."""
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper()) if text else None
    return level if isinstance(level, int) else fallback


def level_name(level: int) -> str:
    return logging.getLevelName(level)


def env_level(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Level forced by the environment, or ``None`` when nothing is set."""
    env = os.environ if environ is None else environ
    explicit = env.get(LEVEL_ENV)
    if explicit and explicit.strip():
        return parse_level(explicit)
    for var in DEBUG_ENV:
        if (env.get(var) or "").strip().lower() in _TRUTHY:
            return logging.DEBUG
    return None


def configure_root(default_level: LevelLike = logging.INFO) -> int:
    """Install the compact format on the root logger and set its level.

    Handlers are only added when the root logger has none, so calling this
    from an application that already configured logging just adjusts the
    level. Returns the effective level.
    """
    forced = env_level()
    level = forced if forced is not None else parse_level(default_level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(level)
    return level


def apply_debug_preference(debug_enabled: bool) -> int:
    """Switch the root logger between DEBUG and INFO for a settings toggle."""
    forced = env_level()
    if forced is not None:
        level = forced
    else:
        level = logging.DEBUG if debug_enabled else logging.INFO
    logging.getLogger().setLevel(level)
    return level


def env_requests_debug() -> bool:
    """True when the environment forces DEBUG (or a more verbose level)."""
    forced = env_level()
    return forced is not None and forced <= logging.DEBUG


__all__ = [
    "LOG_FORMAT",
    "apply_debug_preference",
    "configure_root",
    "env_level",
    "env_requests_debug",
    "level_name",
    "parse_level",
]

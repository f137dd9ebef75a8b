# FILE: i18n_keygen/utils/logging.py
"""
Unified logging helpers for i18n-keygen

- Configures the package logger ("i18n_keygen") with a stderr handler.
- Honors log level from the environment via "I18N_KEYGEN_LOG_LEVEL" (e.g. "INFO", "DEBUG"),
  or from the "logLevel" entry of i18n-config.json.
- Provides a small helper to compact JSON (key tables) for log lines.
"""

import json
import logging
import os
from typing import Any, Optional

PACKAGE_LOGGER = "i18n_keygen"
LEVEL_ENV_VAR = "I18N_KEYGEN_LOG_LEVEL"


# ---------------------------
# Level helpers
# ---------------------------

def _level_from_string(level_str: Optional[str], default: int = logging.INFO) -> int:
    """Map string level to logging constant; defaults to `default` on unknown."""
    if not level_str:
        return default
    level = getattr(logging, str(level_str).strip().upper(), None)
    return level if isinstance(level, int) else default


def _level_from_env(default: int = logging.INFO) -> int:
    """Read desired log level from the environment (I18N_KEYGEN_LOG_LEVEL)."""
    return _level_from_string(os.environ.get(LEVEL_ENV_VAR), default=default)


# ---------------------------
# Public logger factory
# ---------------------------

def get_keygen_logger(
    level: Optional[str] = None,
    *,
    default_level: int = logging.INFO,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Precedence: explicit `level` argument, then I18N_KEYGEN_LOG_LEVEL, then `default_level`.
    Calling it again only updates the level; a single stderr handler is attached.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(h)
    env_level = _level_from_env(default=default_level)
    logger.setLevel(_level_from_string(level, default=env_level))
    return logger


# ---------------------------
# Format utilities
# ---------------------------

def compact_json(obj: Any, limit: int = 1200) -> str:
    """Compact JSON string for logging; truncate if too long."""
    try:
        s = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        s = str(obj)
    return s if len(s) <= limit else s[:limit] + "…(truncated)"

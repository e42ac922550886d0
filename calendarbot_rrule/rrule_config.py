"""calendarbot_rrule.rrule_config

Configuration for recurrence set evaluation.

- Reads YAML (PyYAML; JSON documents are valid YAML too).
- Exposes a typed dataclass `RRuleConfig`, a `load_config()` helper that
  accepts an optional path override, and a process-wide default that new
  recurrence sets read.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CALENDARBOT_RRULE_CONFIG"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RRuleConfig:
    """Typed configuration for calendarbot_rrule.

    Fields:
        cache_enabled: whether new recurrence sets start with their cache enabled
        cache_max_entries: FIFO bound per set cache (None = unbounded)
        log_level: logging level name for the calendarbot_rrule loggers
        strict_unknown_properties: reject unknown content lines instead of skipping them
    """

    cache_enabled: bool = True
    cache_max_entries: int | None = None
    log_level: str = "INFO"
    strict_unknown_properties: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RRuleConfig:
        """Create RRuleConfig from a plain mapping, applying defaults and validation.

        Values are coerced conservatively; anything unusable falls back to its
        default with a warning.
        """
        if data is None:
            data = {}

        def _coerce_bool(key: str, default: bool) -> bool:
            raw = data.get(key, default)
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str) and raw.strip().lower() in ("1", "true", "yes", "on"):
                return True
            if isinstance(raw, str) and raw.strip().lower() in ("0", "false", "no", "off"):
                return False
            if isinstance(raw, int):
                return bool(raw)
            logger.warning("Config %s=%r is not a boolean; using default %s", key, raw, default)
            return default

        cache_max_entries = data.get("cache_max_entries")
        if cache_max_entries is not None:
            try:
                cache_max_entries = int(cache_max_entries)
            except (TypeError, ValueError):
                logger.warning("Config cache_max_entries=%r is not an int; using unbounded cache", cache_max_entries)
                cache_max_entries = None
        if cache_max_entries is not None and cache_max_entries < 1:
            logger.warning("cache_max_entries %d below minimum; coercing to 1", cache_max_entries)
            cache_max_entries = 1

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"
        if log_level not in _LOG_LEVELS:
            logger.warning("Config log_level=%r is not a logging level; using INFO", log_level)
            log_level = "INFO"

        return cls(
            cache_enabled=_coerce_bool("cache_enabled", True),
            cache_max_entries=cache_max_entries,
            log_level=log_level,
            strict_unknown_properties=_coerce_bool("strict_unknown_properties", False),
        )


def load_config(path: str | Path | None = None) -> RRuleConfig:
    """Load configuration from a YAML file and return an RRuleConfig instance.

    Args:
        path: Optional path to the config file. Defaults to the
              ``CALENDARBOT_RRULE_CONFIG`` environment variable.

    Behavior:
    - No path and no environment variable, or a missing file: defaults.
    - File exists but top-level is not a mapping: raises ValueError.
    """
    location = path or os.getenv(CONFIG_ENV_VAR)
    if not location:
        logger.debug("No config path given; using defaults")
        return RRuleConfig()

    p = Path(location)
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return RRuleConfig()

    raw = yaml.safe_load(p.read_text())
    # safe_load returns None for empty files
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004

    cfg = RRuleConfig.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg


# Process-wide default (loaded on first use)
_config: RRuleConfig | None = None


def get_config() -> RRuleConfig:
    """Get the process default configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: RRuleConfig | None) -> None:
    """Replace the process default; None reloads it on next use."""
    global _config
    _config = config

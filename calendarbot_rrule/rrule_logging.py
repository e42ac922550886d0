"""
Central logging configuration for calendarbot_rrule.

Sets levels for the package's module loggers and for python-dateutil, which
the default recurrence engine is built on.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

RRULE_MODULES = [
    "calendarbot_rrule",
    "calendarbot_rrule.rrule_set",
    "calendarbot_rrule.rrule_engine",
    "calendarbot_rrule.rrule_cache",
    "calendarbot_rrule.rrule_serialization",
    "calendarbot_rrule.rrule_dates",
    "calendarbot_rrule.rrule_timezone",
    "calendarbot_rrule.rrule_config",
]

SUPPRESSED_LOGGERS = [
    "dateutil",
]

# Readable colorized format:
# HH:MM:SS  LEVEL   logger.name: message
CONSOLE_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def init_console_logging(level_name: Optional[str] = None) -> None:
    """Attach a colorized stderr handler to the root logger.

    Does nothing to handlers when the root logger already has some, so host
    applications keep their own setup. CALENDARBOT_DEBUG forces DEBUG.
    """
    debug_env = os.environ.get("CALENDARBOT_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
        root.addHandler(handler)

    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    root.setLevel(level)


def configure_rrule_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for calendarbot_rrule.

    Debug mode can be overridden via environment variable for troubleshooting.
    Third-party loggers stay at WARNING either way.

    Args:
        debug_mode: Whether to enable debug logging for calendarbot_rrule modules
        force_debug: Override debug mode setting (None to use env var detection)
        level: Level name used when debug is off (e.g. ``RRuleConfig.log_level``)

    Environment Variables:
        CALENDARBOT_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALENDARBOT_LOG_LEVEL: Override the package log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CALENDARBOT_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("CALENDARBOT_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    package_level = logging.INFO
    if level and level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        package_level = getattr(logging, level.upper())
    if final_debug:
        package_level = logging.DEBUG
    elif env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        package_level = getattr(logging, env_log_level)

    logger_config: dict[str, int] = {name: logging.WARNING for name in SUPPRESSED_LOGGERS}
    for module in RRULE_MODULES:
        logger_config[module] = package_level

    for logger_name, logger_level in logger_config.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    logging.getLogger("calendarbot_rrule").debug(
        "calendarbot_rrule logging configured at %s", logging.getLevelName(package_level)
    )


def reset_logging_to_debug() -> None:
    """
    Reset package and suppressed third-party loggers to DEBUG for troubleshooting.
    """
    for logger_name in RRULE_MODULES + SUPPRESSED_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger("calendarbot_rrule").info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ["calendarbot_rrule", *SUPPRESSED_LOGGERS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status

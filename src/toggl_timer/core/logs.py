"""Logging setup for toggl-timer."""

import logging
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "toggl_timer"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> logging.Logger:
    """Attach console (and optionally file) handlers to the package logger.

    Args:
        level: Log level name
        log_file: Also write records to this file

    Returns:
        The package logger
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    return package_logger


_saved_level: Optional[int] = None


def disable_log() -> None:
    """Silence all toggl_timer log output."""
    global _saved_level
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _saved_level is None:
        _saved_level = package_logger.level
    package_logger.setLevel(logging.CRITICAL + 1)


def enable_log() -> None:
    """Re-enable toggl_timer log output after disable_log()."""
    global _saved_level
    if _saved_level is not None:
        logging.getLogger(PACKAGE_LOGGER).setLevel(_saved_level)
        _saved_level = None

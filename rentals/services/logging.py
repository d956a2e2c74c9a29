"""Logging setup for billing runs.

Records go to stdout and to a log file. LOG_LEVEL in the environment
overrides the configured level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
"""

import logging
import os
import sys
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_MAP = {
    name: getattr(logging, name) for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}


def get_log_level(default: str = "INFO") -> int:
    """Resolve LOG_LEVEL (or `default` when unset) to a logging constant.

    Unknown names resolve to INFO.
    """
    name = os.getenv("LOG_LEVEL", default).upper()
    return LOG_LEVEL_MAP.get(name, logging.INFO)


def setup_logging(log_file: str = "logs/billing.log", level: str = "INFO") -> None:
    """
    Route every logger to stdout and `log_file`.

    Calling it again replaces the handlers installed before, so the CLI can
    be invoked repeatedly in one process.

    Args:
        log_file: Log file path; missing directories are created
        level: Level name used when LOG_LEVEL is not set
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    log_level = get_log_level(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    for handler in (
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_path, encoding="utf-8"),
    ):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        "Logging to stdout and %s at %s", log_path, logging.getLevelName(log_level)
    )


__all__ = ["setup_logging", "get_log_level", "LOG_LEVEL_MAP", "LOG_FORMAT"]

"""Logging configuration for the ledger API server.

One root configuration for the whole process: stdout plus a log file, both at the
level named by Settings.log_level (LOG_LEVEL in the environment or .env).
uvicorn is started without its own logging config so its records land here too.
"""

import logging
import sys
from pathlib import Path

from rentledger.config import Settings

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_log_level(name: str) -> int:
    """Logging constant for a level name, case-insensitive. Unknown names mean INFO."""
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def configure_logging(settings: Settings) -> Path:
    """
    Install stdout and file handlers on the root logger.

    Args:
        settings: Supplies log_level and log_file

    Returns:
        Path of the log file in use

    Behavior:
        - Creates the log file's directory when missing
        - Replaces handlers installed by a previous call
    """
    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = resolve_log_level(settings.log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    return log_path

"""Logging setup for the FixedFloat client, built on loguru."""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

# library default: silent until the application opts in
_logger.disable("fixedfloat")


def setup_logging(
    log_file: Optional[str] = "fixedfloat.log",
    level: str = "INFO",
    enable_console: bool = True,
) -> None:
    """Configure structured logging and enable this package's log records.

    Args:
        log_file: Path to log file, or None to skip file logging
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to log to stderr as well
    """
    _logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            str(log_path),
            format=log_format,
            level=level,
            rotation="10 MB",
            retention="7 days",
        )

    # stderr keeps stdout free for CLI output
    if enable_console:
        _logger.add(
            sys.stderr,
            format=log_format,
            level=level,
            colorize=True,
        )

    _logger.enable("fixedfloat")


logger = _logger

"""
Logging configuration using loguru.

Provides a centralized logging setup for the validator and the local CI runner.
"""

import sys
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger

CONSOLE_FORMAT = "<level>[{level}]</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def get_logger(
    name: str,
    log_file: Optional[Path] = None,
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "7 days",
    sink: Optional[TextIO] = None,
) -> "logger":
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__).
        log_file: Optional path to log file.
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        rotation: Log file rotation size.
        retention: Log file retention period.
        sink: Console stream for the leveled report lines (default: stdout).

    Returns:
        Configured loguru logger instance.
    """
    # Remove default handler
    logger.remove()

    if sink is None:
        sink = sys.stdout

    logger.add(
        sink,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=sink.isatty() if hasattr(sink, "isatty") else False,
    )

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation=rotation,
            retention=retention,
            compression="zip",
        )

    return logger.bind(name=name)


"""
Logging for a Fasten run.

The console sink writes to stderr (stdout carries the final report); every run
also gets its own rotating DEBUG-level file under ``log_dir``.
"""

from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)
PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}"
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} | {message}"
)


def log_file_path(log_dir: str | Path, now: datetime | None = None) -> Path:
    """``<log_dir>/fasten_<utc timestamp>_<pid>.log``; unique per concurrent run."""
    now = now or datetime.now(timezone.utc)
    return Path(log_dir) / f"fasten_{now:%Y%m%d_%H%M%S}_{os.getpid()}.log"


def setup_logger(
    log_dir: str | Path = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    colorize: bool | None = None,
) -> Path:
    """
    Replace loguru's sinks with a console sink and a per-run file sink.

    Args:
        log_dir: Directory for log files, created if missing
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL); the file
            always records DEBUG
        rotation: Log rotation policy (e.g., "50 MB", "1 day")
        retention: Log retention policy (e.g., "30 days", "1 month")
        colorize: Force colors on or off; None colors only a terminal

    Returns:
        Path to the log file
    """
    log_file = log_file_path(log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()

    if colorize is None:
        colorize = sys.stderr.isatty()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=CONSOLE_FORMAT if colorize else PLAIN_FORMAT,
        colorize=colorize,
        backtrace=False,
        diagnose=False,
    )
    logger.add(
        log_file,
        level="DEBUG",
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        backtrace=True,
        diagnose=False,
    )

    logger.debug("[Logging] Console level {}, file {}", level.upper(), log_file)
    return log_file

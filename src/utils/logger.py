"""
Loguru logging for the snapshot service.

Usage:
    from src.utils.logger import logger

    logger.info("Refreshing snapshot...")
    logger.exception("Refresh failed")

Importing this module gives a stdout-only logger. Long-running entry points
call ``setup_logger()`` again with the file settings from ``LOG_*``.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable

from loguru import logger

logger.remove()

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level: <8} | {thread.name} | {name}:{line} | {message}"

# httpx logs every request at INFO; one refresh makes dozens of them
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def quiet_library_loggers(names: Iterable[str] = NOISY_LOGGERS, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def setup_logger(
    log_level: str = "INFO",
    log_dir: str | Path = "logs",
    log_file: str = "snapshots.log",
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
    enable_stdout: bool = True,
    enable_file: bool = True,
) -> None:
    """
    (Re)configure the logger sinks.

    Args:
        log_level: Minimum level for every sink
        log_dir: Directory of the rotating log file
        log_file: Log file name
        rotation: Loguru rotation condition ("10 MB", "1 day", "00:00")
        retention: How long rotated files are kept
        serialize: Write the file sink as JSON lines
        enable_stdout: Add the colored stdout sink
        enable_file: Add the rotating file sink
    """
    logger.remove()
    quiet_library_loggers()

    if enable_stdout:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / log_file,
            format=FILE_FORMAT,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=serialize,
            backtrace=True,
            diagnose=False,
            # Snapshot batches are written from a thread pool
            enqueue=True,
        )

    logger.debug(f"Logger configured: level={log_level}, file={'on' if enable_file else 'off'}")


setup_logger(enable_file=False)


__all__ = ["logger", "setup_logger", "quiet_library_loggers"]

"""
Colored loguru setup for global optimization runs.

The library itself only emits through ``loguru.logger``; applications call
:func:`setup_logger` once to decide where records go.
"""

from datetime import datetime, timezone
import os
import sys

from loguru import logger

_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
)


def setup_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
) -> str:
    """
    Set up console and file logging for an optimization run.

    Args:
        log_dir: Directory for log files
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: Log rotation policy (e.g., "50 MB", "1 day")
        retention: Log retention policy (e.g., "30 days", "1 month")
        enable_colors: Whether to enable colored console output

    Returns:
        Path to the main log file
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"globopt_{timestamp}.log")

    # Drop loguru's default stderr sink and anything configured before us
    logger.remove()

    colorize = enable_colors and sys.stdout.isatty()
    if colorize:
        console_format = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<yellow>{line}</yellow> | "
            "<level>{message}</level>"
        )
    else:
        console_format = "{time:HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"

    logger.add(
        sys.stdout,
        level=level,
        format=console_format,
        colorize=colorize,
        backtrace=True,
        diagnose=False,
    )

    logger.add(
        log_file,
        level=level,
        format=_FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        backtrace=True,
        diagnose=False,
    )

    logger.info("[setup_logger] Logging to console and {}", log_file)
    logger.debug("[setup_logger] Level: {}, colors: {}", level, colorize)
    return log_file

"""
Logging setup.

Replaces loguru's default sink with a stderr sink and an optional
rotating file sink.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
    "{extra[component]: <10} | {message}"
)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure loguru sinks.

    Args:
        level: Minimum level for both sinks
        log_file: Path of the rotating log file; None disables it
    """
    logger.remove()
    logger.configure(extra={"component": "-"})
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="14 days",
        )

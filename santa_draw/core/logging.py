import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time} | {level} | {module}:{function}:{line} | {extra} | {message}"


def setup_logging(level: str, log_path: str) -> None:
    """Console sink at ``level``; rotating file sink at DEBUG unless ``log_path`` is empty."""
    logger.remove()
    logger.configure(extra={})
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if not log_path:
        return

    Path(log_path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path,
        level="DEBUG",
        format=LOG_FORMAT,
        rotation="100 KB",
        compression="zip",
        enqueue=True,
    )

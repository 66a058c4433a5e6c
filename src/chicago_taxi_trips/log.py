"""loguru setup shared by the CLI and the DAG task."""
import sys

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    """Route log records to stderr at ``level``; stdout is kept for tables."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}",
    )

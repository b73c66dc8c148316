"""
Loguru logging configuration.

- colorized console output in development
- JSON lines in staging/production
- console only, warnings and up, under tests
- every record carries the request correlation ID
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def correlation_filter(record: "Record") -> bool:
    """Attach the correlation ID to the record. Never drops messages."""
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


def configure_logging(environment: str = "development", log_dir: str = "logs") -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development", "test", or anything else for JSON output.
        log_dir: Directory for the rotating file sink (unused under tests).
    """
    logger.remove()

    if environment == "test":
        logger.add(
            sys.stderr, format=CONSOLE_FORMAT, level="WARNING", filter=correlation_filter
        )
        return

    development = environment == "development"
    if development:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level="DEBUG",
            filter=correlation_filter,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    logger.add(
        str(Path(log_dir) / "forum.log"),
        format=CONSOLE_FORMAT if development else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not development,
    )

"""
Loguru logging configuration with Sentry integration.

Features:
- Structured JSON logging for production
- Console logging for development
- Standard library loggers (uvicorn, sqlalchemy, apscheduler) routed into Loguru
- Correlation ID in all log messages
"""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record


def correlation_filter(record: "Record") -> bool:
    """
    Add the current correlation ID unless the record already carries one.

    Args:
        record: Loguru log record.

    Returns:
        Always True (filter never drops messages).
    """
    record["extra"].setdefault("correlation_id", get_correlation_id() or "-")
    return True


class InterceptHandler(logging.Handler):
    """Forward standard library log records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(environment: str = "development", log_dir: str = "logs") -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for console, anything else for JSON.
        log_dir: Directory receiving the rotating log file. Skipped for "test".
    """
    # Remove default handler
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[correlation_id]}</cyan> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )
    is_development = environment in ("development", "test")

    if is_development:
        logger.add(
            sys.stderr,
            format=log_format,
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
            serialize=True,  # JSON output
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "apscheduler"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    if environment == "test":
        return

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(logs_dir / "app.log"),
        format=log_format if is_development else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not is_development,
    )

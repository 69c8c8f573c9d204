"""
Loguru logging configuration.

Development logs go to a colour console, other environments emit JSON.
Every record carries the request correlation ID and a compact ``context``
string built from the club fields services bind (who acted on what).
Outside of tests two rotating file sinks are added under LOG_DIR: the
application log and a reconciliation log holding counter repairs only.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

# Keyword fields services pass to logger calls, in display order
CONTEXT_FIELDS = (
    "user_id",
    "group_id",
    "content_type",
    "content_id",
    "comment_id",
    "action",
)

RECONCILIATION_MODULES = ("services.reconciliation_service", "tasks.reconcile_counters")


def correlation_filter(record: "Record") -> bool:
    """
    Add the correlation ID and the club context to a log record.

    Args:
        record: Loguru log record.

    Returns:
        Always True (filter never drops messages).
    """
    extra = record["extra"]
    extra["correlation_id"] = get_correlation_id() or "-"
    extra["context"] = " ".join(
        f"{name}={extra[name]}" for name in CONTEXT_FIELDS if name in extra
    )
    return True


def reconciliation_filter(record: "Record") -> bool:
    """Keep only records emitted by the counter reconciliation code."""
    correlation_filter(record)
    return record["name"].startswith(RECONCILIATION_MODULES)


def configure_logging(environment: str = "development", log_dir: str = "logs") -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for console, anything else for JSON.
        log_dir: Directory for the rotating file sinks.
    """
    logger.remove()

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[correlation_id]}</cyan> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level> <dim>{extra[context]}</dim>"
    )
    development = environment == "development"

    if development:
        logger.add(
            sys.stderr,
            format=console_format,
            level="DEBUG",
            filter=correlation_filter,
            colorize=True,
        )
    else:
        # JSON keeps every bound field as its own key
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    if environment == "test":
        return

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(logs_dir / "uniclub.log"),
        format=console_format if development else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not development,
    )
    # Counter repairs only
    logger.add(
        str(logs_dir / "reconciliation.log"),
        format="{message}",
        level="INFO",
        filter=reconciliation_filter,
        rotation="10 MB",
        retention="30 days",
        serialize=True,
    )

"""Logging configuration."""

import json
import sys
from typing import Any, Dict

from loguru import logger

from souvella.settings import settings


def correlation_id_filter(record: Dict[str, Any]) -> bool:
    """Add correlation ID to log record.

    Checks extra fields first (bound by the caller), then falls back to the
    request context.

    Args:
        record: The log record dictionary

    Returns:
        Always True, the record is never dropped
    """
    from souvella.settings.context import get_correlation_id

    correlation_id = record["extra"].get("correlation_id")
    if not correlation_id or correlation_id == "N/A":
        correlation_id = get_correlation_id()

    record["extra"]["correlation_id"] = correlation_id or "N/A"
    return True


def json_formatter(record: Dict[str, Any]) -> str:
    """Format log record as JSON for production.

    Args:
        record: The log record dictionary

    Returns:
        Format string wrapping the serialized record
    """
    log_entry = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "correlation_id": record["extra"].get("correlation_id", "N/A"),
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
        }

    # loguru treats the return value as a template, so the payload goes through extra
    record["extra"]["serialized"] = json.dumps(log_entry)
    return "{extra[serialized]}\n"


def configure_logging():
    """Configure application logging with correlation ID support."""
    logger.remove()

    if settings.environment.value in ["development", "staging", "testing"]:
        logger.add(
            sys.stdout,
            level=settings.log_level.value,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<yellow>[{extra[correlation_id]}]</yellow> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
            colorize=True,
            filter=correlation_id_filter,
        )

    if settings.environment.value == "production":
        logger.add(
            sys.stdout,
            level=settings.log_level.value,
            format=json_formatter,
            filter=correlation_id_filter,
        )

        logger.add(
            "logs/souvella-error.log",
            level="ERROR",
            format=json_formatter,
            rotation="1 day",
            retention="30 days",
            compression="zip",
            filter=correlation_id_filter,
        )

    logger.disable("asyncio")

    return logger

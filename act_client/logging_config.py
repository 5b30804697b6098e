"""Structured logging configuration for the act client."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger


class JSONFormatter:
    """JSON formatter for structured logging."""

    def __call__(self, record: dict[str, Any]) -> str:
        """Serialize the record into ``extra`` and return a template that prints it."""
        log_data = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "module": record.get("module", ""),
            "function": record.get("function", ""),
            "line": record.get("line", 0),
        }

        exception = record.get("exception")
        if exception is not None:
            log_data["exception"] = {
                "type": exception.type.__name__ if exception.type else None,
                "value": str(exception.value) if exception.value else None,
            }

        extra = {k: v for k, v in record["extra"].items() if k != "serialized"}
        log_data.update(extra)

        record["extra"]["serialized"] = json.dumps(log_data, ensure_ascii=False, default=str)
        return "{extra[serialized]}\n"


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure logging for the application and enable the client's logs.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Whether to use JSON formatting (useful for production).
        log_file: Optional path to log file. If None, logs only to stderr.
    """
    logger.remove()
    logger.enable("act_client")

    if json_format:
        formatter: Any = JSONFormatter()
    else:
        formatter = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=formatter,
        level=level,
        colorize=not json_format,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )


def get_logger(name: str | None = None) -> Any:
    """Return the shared loguru logger, tagged with ``name`` when given.

    Library modules call ``get_logger(__name__)`` so every line they emit
    carries its origin in ``extra["name"]``, which the JSON sink writes out.
    """
    return logger.bind(name=name) if name else logger


__all__ = ["JSONFormatter", "setup_logging", "get_logger"]

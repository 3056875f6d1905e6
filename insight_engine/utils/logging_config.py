"""
Logging setup for the engine and its HTTP boundary.

Core modules only call ``logging.getLogger(__name__)``; handlers are attached
here, once, to the ``insight_engine`` logger tree.
"""
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes passed through ``extra=`` that belong in structured records
ENGINE_FIELDS = ("operation", "details")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including the engine's extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        for name in ENGINE_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _formatter(log_format: str) -> logging.Formatter:
    if log_format.lower() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    app_name: str = "insight_engine"
) -> logging.Logger:
    """
    Attach console (and optionally rotating file) handlers to a logger.

    Args:
        level: Level name; unknown names fall back to INFO
        log_format: "json" or "text" for the console handler
        log_file: Path of a JSON log file, created with its parent directory
        app_name: Logger name; "insight_engine" also captures the core modules

    Returns:
        The configured logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(app_name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(log_format))
    logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        # Files are always structured
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(numeric_level)
    return logger


@lru_cache()
def get_logger(name: str = "insight_engine") -> logging.Logger:
    """Logger configured from the environment settings."""
    from insight_engine.utils.settings import get_settings
    settings = get_settings()

    return setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        app_name=name,
    )

"""Structured logging configuration for the chat bridge."""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Client libraries log every request at INFO; the bridge logs its own timings
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with dispatch context lifted to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            # message_id makes retries of one delivery greppable together
            if "message_id" in context:
                entry["message_id"] = context["message_id"]
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def build_logging_config(
    log_level: str = "INFO",
    log_file: str | None = None,
    console: bool = True,
) -> dict[str, Any]:
    """
    Build the dictConfig mapping for the bridge.

    The file handler is omitted when log_file is empty.

    Raises:
        ValueError: If log_level is not a standard level name.
    """
    level = log_level.upper()
    if level not in LEVELS:
        raise ValueError(f"Unknown log level: {log_level!r}")

    handlers: dict[str, dict[str, Any]] = {}
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JSONFormatter}},
        "handlers": handlers,
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {"level": level, "handlers": list(handlers)},
    }


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Setup structured logging for the bridge.

    Args:
        log_level: Defaults to the LOG_LEVEL env var, then INFO.
        log_file: Defaults to the LOG_FILE env var, then 04_logs/app.log.
            Set LOG_FILE to an empty string to log to stdout only.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")
    if log_file is None:
        log_file = os.getenv("LOG_FILE", str(DEFAULT_LOG_PATH))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_level, log_file))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

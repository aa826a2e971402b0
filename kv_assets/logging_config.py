"""Logging setup for the assets namespace.

Modules log through ``get_logger(<module>)`` and attach structured fields with
``extra={...}``. The JSON formatter emits those fields next to the standard
ones; the text formatter appends them as ``key=value`` pairs.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "urllib3")


def record_extras(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            **record_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def setup_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    log_to_file: bool = False,
    log_dir: str = "logs",
) -> logging.Logger:
    """Configure the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON instead of text on the console
        log_to_file: Also write JSON records to ``<log_dir>/kv_assets.log``
        log_dir: Directory for the log file
    """
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "json" if json_output else "text",
        }
    }
    if log_to_file:
        Path(log_dir).mkdir(exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": str(Path(log_dir) / "kv_assets.log"),
            "formatter": "json",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {
                    "()": TextFormatter,
                    "fmt": "%(levelname)-8s %(asctime)s [%(name)s] %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {"()": JSONFormatter},
            },
            "handlers": handlers,
            "root": {"level": log_level, "handlers": list(handlers)},
            "loggers": {name: {"level": "WARNING"} for name in NOISY_LOGGERS},
        }
    )
    return logging.getLogger("kv_assets")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module."""
    return logging.getLogger(f"kv_assets.{name}")

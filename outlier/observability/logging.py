"""Logging setup for the CLI and the HTTP server."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from outlier.server.config import LoggingConfig

COMPACT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PRETTY_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s"

# Extra attributes copied into JSON records when present
_EXTRA_FIELDS = (
    "method",
    "path",
    "status",
    "latency_ms",
    "client",
    "count",
    "percentile",
    "source_format",
    "error_code",
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging (one object per line)."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _get_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    if log_format == "pretty":
        return logging.Formatter(PRETTY_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(COMPACT_FORMAT)


def _get_handler(config: LoggingConfig) -> logging.Handler:
    if config.output == "file":
        return logging.FileHandler(config.log_file, encoding="utf-8")
    if config.output == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.StreamHandler(sys.stdout)


def configure_logging(config: LoggingConfig, level: str | None = None) -> logging.Handler:
    """Install a single root handler according to the logging config.

    Replaces handlers added by earlier calls so repeated configuration (tests,
    CLI then server) does not duplicate output.

    Args:
        config: Logging configuration
        level: Optional level overriding ``config.level`` (e.g. from --log-level)

    Returns:
        The installed handler
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_outlier_handler", False):
            root.removeHandler(existing)
            existing.close()

    handler = _get_handler(config)
    handler.setFormatter(_get_formatter(config.format))
    handler._outlier_handler = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or config.level).upper()))
    return handler


__all__ = ["COMPACT_FORMAT", "JSONFormatter", "configure_logging"]

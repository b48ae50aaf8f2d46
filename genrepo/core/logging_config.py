"""
Logging configuration.

Sets up the root logger with either single-line JSON records or a plain
text format. Repository modules log through ``logging.getLogger(__name__)``
and attach structured fields with ``extra={...}``; the JSON formatter
copies those fields into the output.
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any, Dict, Optional, TextIO

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Fields:
    - timestamp: ISO 8601, UTC
    - level, logger, message
    - exception: formatted traceback, when present
    - any extra fields passed with the call

    Example output:
        {"timestamp": "2026-01-05T10:30:00.123456+00:00", "level": "DEBUG",
         "message": "repo.count", "logger": "genrepo.repositories.main",
         "model": "Widget", "count": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name; defaults to ``settings.log_level``
        json_format: Use JSONFormatter; defaults to ``settings.log_json``
        stream: Output stream; defaults to stdout

    Note:
        Call once at process startup. Existing root handlers are replaced.
    """
    from genrepo.config import settings

    if level is None:
        level = settings.log_level
    if json_format is None:
        json_format = settings.log_json

    root_logger = logging.getLogger()
    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # SQL echo is controlled by the engine, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

"""Logging setup for sales-ingest runs.

Two output formats: a pipe-separated console format for interactive
runs, and one JSON object per line for scheduled jobs whose logs are
shipped elsewhere. File-level messages carry ``source_file`` and
``district_code`` through ``extra=``; the JSON format keeps them as
fields.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from sales_ingest.config import LOG_FORMATS
from sales_ingest.exceptions import ConfigurationError

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONTEXT_FIELDS = ("source_file", "district_code", "attempt_id")

QUIET_LIBRARIES = ("psycopg", "faker")


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: IO[str] | None = None,
) -> None:
    """Route log records to ``stream`` (stdout by default).

    Parameters
    ----------
    level : str
        Level name for the ``sales_ingest`` loggers.
    format_type : str
        "standard" or "json".
    stream : IO[str] | None
        Destination stream.

    Raises
    ------
    ConfigurationError
        If ``level`` or ``format_type`` is not recognised.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")
    if format_type not in LOG_FORMATS:
        raise ConfigurationError(f"log format must be one of {LOG_FORMATS}, got {format_type!r}")

    formatter: logging.Formatter
    if format_type == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("sales_ingest").setLevel(log_level)
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including file context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LEVEL = "WARNING"


class JSONFormatter(logging.Formatter):
    """One JSON object per log line, for cron mail and log shippers."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.hostname = os.getenv("HOSTNAME", "localhost")

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
            "pid": record.process,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_obj.update(record.extra_fields)

        return json.dumps(log_obj, default=str)


def configure_logging(level: str | None = None, json_output: bool = False) -> None:
    """Configure root logging on stderr; stdout is reserved for reports."""
    lvl_str = (level or os.getenv("LOG_LEVEL") or DEFAULT_LEVEL).upper()
    lvl = getattr(logging, lvl_str, logging.WARNING)

    if json_output or os.getenv("LOG_FORMAT") == "json":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
        logging.basicConfig(level=lvl, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            level=lvl,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                markup=False,
                show_time=True,
                show_level=True,
                show_path=False,
            )],
            force=True,
        )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def log_extra(**kwargs: Any) -> dict[str, Any]:
    """Helper to create extra fields for structured logging."""
    return {"extra_fields": kwargs}

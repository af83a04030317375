"""
Operational (console) logging for bulk-migrate.

What goes to stderr while a run is in progress: startup, plugin loading,
fatal errors and unexpected per-record failures. The per-record audit trail
is `log.jsonl`, written by `bulk_migrate.infrastructure.recorder`; it is not
routed through `logging`.

Two formats:

- console: `time | LEVEL | logger | message | key=value ...`, where the
  trailing pairs are the fields passed with `extra=`,
- JSON: one object per line using the same `time`/`level`/`msg` keys as the
  run log lines, so both streams can be filtered with the same jq queries.

The SDK's HTTP stack (`urllib3`) and the `cloudinary` logger are capped at
WARNING; at DEBUG they would log every upload request.

Usage:
    from bulk_migrate.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("Starting migration", extra={"concurrency": 10})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came from `extra=`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

NOISY_LOGGERS = ("urllib3", "cloudinary")

_MAX_CONSOLE_VALUE = 80


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to `record` through `extra=`."""
    fields = {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and key != "extra"
    }
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a run-log shaped JSON line."""
    payload: Dict[str, Any] = {
        "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname.lower(),
        "logger": record.name,
        "msg": record.getMessage(),
    }
    payload.update(record_fields(record))
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str, ensure_ascii=False)


def _console_value(value: Any) -> str:
    rendered = value if isinstance(value, str) else json.dumps(value, default=str)
    if len(rendered) > _MAX_CONSOLE_VALUE:
        return rendered[: _MAX_CONSOLE_VALUE - 3] + "..."
    return rendered


class JsonFormatter(logging.Formatter):
    """JSON lines formatter; see `_json_formatter`."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ConsoleFormatter(logging.Formatter):
    """Human formatter that appends `extra=` fields as `key=value` pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={_console_value(value)}" for key, value in fields.items())
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
) -> None:
    """
    Configure root logging for the CLI.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit JSON lines instead of the console format.
    """
    level = level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"()": ConsoleFormatter},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in NOISY_LOGGERS},
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["ConsoleFormatter", "JsonFormatter", "configure_logging", "get_logger", "record_fields"]

"""
Durable run log (JSON Lines).

Every line of `<output folder>/log.jsonl` is one self-describing JSON object
tagged with a `flow`:

- `script`  - run parameters, final statistics, fatal errors,
- `plugins` - plugin loading,
- `payload` - exactly one line per processed input record (the outcome).

`payload` lines are the audit trail the report is generated from. Appends are
serialised by a lock and flushed immediately, so concurrent workers never
interleave partial lines and the last complete line is the recovery point.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from bulk_migrate.domain.models import OutcomeRecord

LOG_FILE_NAME = "log.jsonl"


class LogFlow(str, Enum):
    SCRIPT = "script"
    PAYLOAD = "payload"
    PLUGINS = "plugins"


def log_file_path(output_folder: Union[str, Path]) -> Path:
    """Return the run log path inside the output folder."""
    return Path(output_folder) / LOG_FILE_NAME


class RunLog:
    """
    Append-only JSONL sink for one run.

    Parameters
    ----------
    path : Path | str
        Log file to append to (created if missing).
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._handle: Optional[TextIO] = None

    @classmethod
    def in_folder(cls, output_folder: Union[str, Path]) -> "RunLog":
        return cls(log_file_path(output_folder))

    def open(self) -> "RunLog":
        with self._lock:
            if self._handle is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._handle = self.path.open("a", encoding="utf-8")
        return self

    def close(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def __enter__(self) -> "RunLog":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def append(self, outcome: OutcomeRecord) -> None:
        """Persist one outcome record as a `payload` line."""
        self._write(
            LogFlow.PAYLOAD,
            "info" if outcome.succeeded else "error",
            outcome.status.value,
            outcome.model_dump(mode="json"),
        )

    def script(self, msg: str, level: str = "info", **fields: Any) -> None:
        self._write(LogFlow.SCRIPT, level, msg, fields)

    def plugins(self, msg: str, level: str = "info", **fields: Any) -> None:
        self._write(LogFlow.PLUGINS, level, msg, fields)

    def _write(self, flow: LogFlow, level: str, msg: str, fields: Dict[str, Any]) -> None:
        entry: Dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(),
            "flow": flow.value,
            "level": level,
            "msg": msg,
        }
        entry.update(fields)
        line = json.dumps(entry, default=str, ensure_ascii=False)
        with self._lock:
            if self._handle is None:
                raise RuntimeError(f"Run log '{self.path}' is not open")
            self._handle.write(line + "\n")
            self._handle.flush()


__all__ = ["LOG_FILE_NAME", "LogFlow", "RunLog", "log_file_path"]

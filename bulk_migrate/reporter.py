"""
Run reporting: the CSV report derived from the run log and the rich console
output (live progress and the end-of-run summary table).

The report has one row per `payload` line of `log.jsonl`: the original input
columns followed by the derived result columns. Because the input columns are
kept as-is, the report of a run can be filtered on `Result_Status` and fed
back as the input of a follow-up run.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from rich import box
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from bulk_migrate.infrastructure.cloudinary import classify_response
from bulk_migrate.infrastructure.recorder import LogFlow, log_file_path
from bulk_migrate.utils.logging import get_logger

log = get_logger(__name__)

REPORT_FILE_NAME = "report.csv"

RESULT_COLUMNS: List[str] = [
    "Result_Status",
    "Result_Operation",
    "Result_Error",
    "Result_ErrorCategory",
    "Result_ErrorCode",
    "Result_PublicId",
    "Result_Etag",
]


def _iter_outcome_lines(log_path: Path, warn: bool = True) -> Iterator[Dict[str, Any]]:
    with log_path.open("r", encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except ValueError:
                if warn:
                    log.warning(
                        "Skipping unparseable run log line",
                        extra={"log_file": str(log_path), "line": line_no},
                    )
                continue
            if isinstance(entry, dict) and entry.get("flow") == LogFlow.PAYLOAD.value:
                yield entry


def _error_code(error: Any) -> str:
    """Code of the innermost error in the chain that carries one."""
    code = ""
    while isinstance(error, dict):
        code = str(error.get("code") or code)
        error = error.get("cause")
    return code


def _result_columns(entry: Dict[str, Any]) -> Dict[str, str]:
    status = str(entry.get("status") or "")
    response = entry.get("response") if isinstance(entry.get("response"), dict) else {}
    error = entry.get("error") if isinstance(entry.get("error"), dict) else None
    return {
        "Result_Status": status,
        "Result_Operation": classify_response(response) if status == "SUCCEEDED" else "",
        "Result_Error": str(error.get("message", "")) if error else "",
        "Result_ErrorCategory": str(error.get("category") or "") if error else "",
        "Result_ErrorCode": _error_code(error) if error else "",
        "Result_PublicId": str(response.get("public_id") or ""),
        "Result_Etag": str(response.get("etag") or ""),
    }


def log_to_report(output_folder: Union[str, Path]) -> Path:
    """
    Write `<output_folder>/report.csv` from `<output_folder>/log.jsonl`.

    The log is streamed twice: once to collect the union of input columns (in
    first-seen order), once to write the rows. Safe to re-run; the report is
    overwritten.

    Returns
    -------
    Path
        Path of the written report.

    Raises
    ------
    FileNotFoundError
        If the folder has no run log.
    """
    folder = Path(output_folder)
    log_path = log_file_path(folder)
    if not log_path.is_file():
        raise FileNotFoundError(f"Run log not found: {log_path}")

    input_columns: Dict[str, None] = {}
    for entry in _iter_outcome_lines(log_path):
        for column in entry.get("input") or {}:
            if column not in RESULT_COLUMNS:
                input_columns.setdefault(column, None)
    header = list(input_columns) + RESULT_COLUMNS

    report_path = folder / REPORT_FILE_NAME
    rows = 0
    with report_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=header, restval="", extrasaction="ignore")
        writer.writeheader()
        for entry in _iter_outcome_lines(log_path, warn=False):
            row: Dict[str, Any] = {
                column: ("" if value is None else value)
                for column, value in (entry.get("input") or {}).items()
            }
            row.update(_result_columns(entry))
            writer.writerow(row)
            rows += 1

    log.info("Report written", extra={"report": str(report_path), "rows": rows})
    return report_path


class MigrationProgress:
    """
    Live rich progress for a run, fed with engine statistics snapshots.

    The display starts on the first update, so anything printed before
    processing begins (such as the confirmation prompt) is not overdrawn.
    """

    def __init__(self, total: Optional[int], console: Optional[Console] = None) -> None:
        self._progress = Progress(
            TextColumn("[bold cyan]Migrating"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.fields[counters]}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task = self._progress.add_task("migrate", total=total, counters="")
        self._started = False

    def update(self, snapshot: Dict[str, int]) -> None:
        if not self._started:
            self._progress.start()
            self._started = True
        counters = (
            f"concurrent={snapshot['concurrent']} attempted={snapshot['attempted']} "
            f"[green]succeeded={snapshot['succeeded']}[/green] "
            f"[red]failed={snapshot['failed']}[/red]"
        )
        self._progress.update(
            self._task,
            completed=snapshot["succeeded"] + snapshot["failed"],
            counters=counters,
        )

    def stop(self) -> None:
        if self._started:
            self._progress.stop()
            self._started = False

    def __enter__(self) -> "MigrationProgress":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def print_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render the run summary as a rich table.
    """
    console = console or Console()
    table = Table(title="Migration Summary", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    table.add_row("Attempted", f"{summary.get('attempted', 0):,}")
    table.add_row("Succeeded", f"[green]{summary.get('succeeded', 0):,}[/green]")
    failed = summary.get("failed", 0)
    table.add_row("Failed", f"[red]{failed:,}[/red]" if failed else "0")
    table.add_row("Peak concurrency", str(summary.get("peak_concurrent", 0)))
    table.add_row("Duration (s)", f"{summary.get('duration_seconds', 0.0):.1f}")
    peak_rss = summary.get("peak_rss_bytes")
    table.add_row("Peak memory (MB)", f"{peak_rss / (1024 * 1024):.2f}" if peak_rss else "N/A")
    table.add_row("Run log", str(summary.get("log_path", "")))
    table.add_row("Report", str(summary.get("report_path") or "not generated"))

    console.print(table)


__all__ = [
    "MigrationProgress",
    "REPORT_FILE_NAME",
    "RESULT_COLUMNS",
    "log_to_report",
    "print_summary",
]

"""
Orchestrator for a migration run.

Wires the collaborators together for one run and owns their lifecycle:

    settings -> credentials -> output folder + run log -> Cloudinary client
    -> plugin registry (initialized once) -> payload builder -> processor
    -> batch engine -> final statistics -> report.csv

Usage (example from code):
    from bulk_migrate.orchestrator import RunConfig, run_migration

    summary = run_migration(
        RunConfig(input_csv="assets.csv", output_folder="out/run-1", concurrency=10)
    )
    print(summary.to_dict())

Fatal errors (`FatalError` family) are written to the run log's script flow
and re-raised; per-record failures only ever show up as FAILED outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from bulk_migrate.config import Settings, get_settings
from bulk_migrate.domain.errors import (
    ConfigurationError,
    FatalError,
    RunAbortedError,
    describe_error,
)
from bulk_migrate.execution.engine import BatchEngine, ProgressCallback, RunStatistics
from bulk_migrate.execution.processor import RecordProcessor
from bulk_migrate.infrastructure.cloudinary import CloudinaryClient, UploadOperation
from bulk_migrate.infrastructure.csv_source import iter_csv_records
from bulk_migrate.infrastructure.recorder import RunLog
from bulk_migrate.payload.builder import PayloadBuilder
from bulk_migrate.payload.template import MigrationProfile
from bulk_migrate.plugins import default_registry
from bulk_migrate.plugins.registry import PluginRegistry
from bulk_migrate.reporter import log_to_report
from bulk_migrate.utils.logging import get_logger
from bulk_migrate.utils.profiler import profile_block

log = get_logger(__name__)

ConfirmCallback = Callable[[Mapping[str, Any]], bool]


@dataclass
class RunConfig:
    """
    Parameters of one migration run.

    Attributes
    ----------
    input_csv : Path
        CSV file with a header row; one row per asset.
    output_folder : Path
        Folder for `log.jsonl` and `report.csv`. Must not exist yet.
    concurrency : int
        Maximum number of uploads in flight (1..MAX_CONCURRENCY_CAP).
    profile : MigrationProfile
        How a row becomes an upload payload.
    confirm : callable | None
        Receives the run parameters before processing; returning False aborts.
    on_progress : callable | None
        Receives engine statistics snapshots during the run.
    produce_report : bool
        Whether to write `report.csv` after the run.
    """

    input_csv: Path
    output_folder: Path
    concurrency: int
    profile: MigrationProfile = field(default_factory=MigrationProfile)
    confirm: Optional[ConfirmCallback] = None
    on_progress: Optional[ProgressCallback] = None
    produce_report: bool = True

    def __post_init__(self) -> None:
        self.input_csv = Path(self.input_csv)
        self.output_folder = Path(self.output_folder)


@dataclass
class RunSummary:
    attempted: int
    succeeded: int
    failed: int
    peak_concurrent: int
    duration_seconds: float
    peak_rss_bytes: Optional[int]
    log_path: Path
    report_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "peak_concurrent": self.peak_concurrent,
            "duration_seconds": round(self.duration_seconds, 2),
            "peak_rss_bytes": self.peak_rss_bytes,
            "log_path": str(self.log_path),
            "report_path": str(self.report_path) if self.report_path else None,
        }


def _validate(config: RunConfig, settings: Settings) -> None:
    cap = settings.max_concurrency_cap
    if not 1 <= config.concurrency <= cap:
        raise ConfigurationError(
            f"Concurrency must be between 1 and {cap}, got {config.concurrency}"
        )
    if not config.input_csv.is_file():
        raise ConfigurationError(f"Input file '{config.input_csv}' does not exist")
    if config.output_folder.exists():
        raise ConfigurationError(
            f"Output folder '{config.output_folder}' already exists; "
            "choose a new folder for every run"
        )


def run_migration(
    config: RunConfig,
    settings: Optional[Settings] = None,
    client: Optional[CloudinaryClient] = None,
    registry: Optional[PluginRegistry] = None,
) -> RunSummary:
    """
    Execute one migration run end to end.

    Parameters
    ----------
    config : RunConfig
        Run parameters.
    settings : Settings | None
        Defaults to `get_settings()`.
    client : CloudinaryClient | None
        Pre-built client. When omitted it is built from the settings.
    registry : PluginRegistry | None
        Uninitialized registry; defaults to `default_registry(client)`.

    Returns
    -------
    RunSummary
        Final statistics and artifact paths. Returned even when every record
        failed.

    Raises
    ------
    FatalError
        Configuration, plugin initialization, record source failures, or the
        operator declining the confirmation.
    """
    settings = settings or get_settings()
    _validate(config, settings)

    if client is None:
        client = CloudinaryClient(
            settings.credentials(),
            timeout_seconds=settings.request_timeout_seconds,
            schema_fetch_attempts=settings.schema_fetch_attempts,
        )

    config.output_folder.mkdir(parents=True)
    run_log = RunLog.in_folder(config.output_folder).open()
    try:
        stats, duration, peak_rss = _execute(config, client, registry, run_log)
    except FatalError as exc:
        log.error("Migration aborted", extra={"error": str(exc)})
        run_log.script("Migration aborted", level="fatal", error=describe_error(exc))
        raise
    finally:
        run_log.close()

    summary = RunSummary(
        attempted=stats.attempted,
        succeeded=stats.succeeded,
        failed=stats.failed,
        peak_concurrent=stats.peak_concurrent,
        duration_seconds=duration,
        peak_rss_bytes=peak_rss,
        log_path=run_log.path,
    )
    if config.produce_report:
        summary.report_path = log_to_report(config.output_folder)
    return summary


def _execute(
    config: RunConfig,
    client: CloudinaryClient,
    registry: Optional[PluginRegistry],
    run_log: RunLog,
) -> Tuple[RunStatistics, float, Optional[int]]:
    registry = registry if registry is not None else default_registry(client)
    registry.initialize()
    run_log.plugins("Plugins loaded", plugins=registry.names())

    builder = PayloadBuilder(config.profile.to_payload, registry, config.profile.steps)
    parameters: Dict[str, Any] = {
        "input_csv": str(config.input_csv),
        "output_folder": str(config.output_folder),
        "concurrency": config.concurrency,
        "cloud_name": client.credentials.cloud_name,
        "steps": builder.step_ids,
        "upload_options": config.profile.upload_options,
    }
    if config.confirm is not None and not config.confirm(parameters):
        raise RunAbortedError("Migration cancelled by the operator")

    run_log.script("Starting migration", **parameters)
    log.info("Starting migration", extra=parameters)

    processor = RecordProcessor(builder, UploadOperation(client))
    engine = BatchEngine(run_log, on_progress=config.on_progress)
    with profile_block("migrate") as profile:
        stats = engine.run(iter_csv_records(config.input_csv), config.concurrency, processor)

    final = stats.snapshot()
    run_log.script(
        "Migration complete",
        stats=final,
        duration_seconds=round(profile.duration_seconds, 2),
        peak_rss_bytes=profile.peak_rss_bytes,
    )
    log.info("Migration complete", extra=final)
    return stats, profile.duration_seconds, profile.peak_rss_bytes


__all__ = ["RunConfig", "RunSummary", "run_migration"]

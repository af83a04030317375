from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import typer
from rich.console import Console

from bulk_migrate.config import get_settings
from bulk_migrate.domain.errors import ConfigurationError, FatalError
from bulk_migrate.infrastructure.csv_source import count_csv_records
from bulk_migrate.orchestrator import RunConfig, run_migration
from bulk_migrate.payload.template import MigrationProfile
from bulk_migrate.reporter import MigrationProgress, log_to_report, print_summary
from bulk_migrate.utils.logging import configure_logging

app = typer.Typer(help="Bulk migration of assets described in a CSV file to Cloudinary.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    try:
        account = settings.credentials().masked()
    except ConfigurationError:
        account = "not configured (set CLOUDINARY_URL)"
    typer.echo(
        f"account={account} | "
        f"max_concurrency={settings.max_concurrency_cap} "
        f"timeout={settings.request_timeout_seconds}s log_level={settings.log_level}"
    )


def _confirm(parameters: Mapping[str, Any]) -> bool:
    typer.echo("Migration parameters:")
    typer.echo(json.dumps(dict(parameters), indent=2, default=str))
    return typer.confirm("Proceed with the migration?", default=False)


@app.command()
def migrate(
    from_csv_file: Path = typer.Option(
        ...,
        "--from-csv-file",
        "-f",
        help="CSV file with one row per asset (header row required).",
    ),
    output_folder: Path = typer.Option(
        ...,
        "--output-folder",
        "-o",
        help="Folder for log.jsonl and report.csv; must not exist yet.",
    ),
    max_concurrent_uploads: int = typer.Option(
        10,
        "--max-concurrent-uploads",
        "-c",
        help="Maximum number of uploads in flight.",
    ),
    profile: Optional[Path] = typer.Option(
        None,
        "--profile",
        "-p",
        help="Migration profile (JSON). Defaults to File/PublicId/Tags columns.",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Upload every asset listed in the CSV file and write the run log and report.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    console = Console()

    try:
        migration_profile = MigrationProfile.load(profile) if profile else MigrationProfile()
        total = count_csv_records(from_csv_file)
        with MigrationProgress(total, console=console) as progress:
            summary = run_migration(
                RunConfig(
                    input_csv=from_csv_file,
                    output_folder=output_folder,
                    concurrency=max_concurrent_uploads,
                    profile=migration_profile,
                    confirm=None if yes else _confirm,
                    on_progress=progress.update,
                ),
                settings=settings,
            )
    except FatalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        raise typer.Exit(code=130)

    print_summary(summary.to_dict(), console=console)


@app.command()
def report(
    output_folder: Path = typer.Option(
        ...,
        "--output-folder",
        "-o",
        help="Output folder of a previous run (must contain log.jsonl).",
    ),
) -> None:
    """
    Re-generate report.csv from the run log of a previous run.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        report_path = log_to_report(output_folder)
    except FileNotFoundError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Report written to {report_path}")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except FatalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

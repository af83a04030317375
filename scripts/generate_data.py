"""
Sample data generator for bulk-migrate.

Writes a deterministic pseudo-random migration CSV (remote image URLs plus
business columns for the structured metadata mapper) and, optionally, a
matching migration profile, so a run can be tried end to end against a test
account.
"""

from __future__ import annotations

import csv
import json
import random
import sys
import time
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(help="Generate a synthetic migration CSV (and profile) for bulk-migrate.")

SAMPLE_IMAGE_URL = "https://res.cloudinary.com/demo/image/upload/sample.jpg"
STATUSES = ["Draft", "In Review", "Approved", "Archived"]
CHANNELS = ["Web", "Print", "Social", "Email"]


def _generate_rows_csv(csv_path: Path, rows: int, batch_size: int, seed: int, prefix: str) -> None:
    rng = random.Random(seed)
    start_day = date(2020, 1, 1)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["File", "PublicId", "Tags", "Description", "Status", "Channels", "Shot On"]
        )

        buffer: List[List[str]] = []
        for i in range(rows):
            channels = rng.sample(CHANNELS, k=rng.randint(1, len(CHANNELS)))
            shot_on = start_day + timedelta(days=rng.randint(0, 1_500))
            buffer.append(
                [
                    SAMPLE_IMAGE_URL,
                    f"{prefix}/asset-{i:06d}",
                    ",".join(rng.sample(["sample", "generated", "bulk", "demo"], k=2)),
                    f"Generated asset #{i}",
                    rng.choice(STATUSES),
                    ",".join(channels),
                    # Mix of accepted date forms.
                    shot_on.isoformat() if i % 2 else f"{shot_on:%Y/%m/%d} 12:30:00",
                ]
            )
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _sample_profile() -> dict:
    return {
        "file_column": "File",
        "public_id_column": "PublicId",
        "tags_column": "Tags",
        "caption_column": "Description",
        "steps": [
            {
                "plugin": "structured-metadata-mapper",
                "options": {
                    "mapping": {
                        "Status": "smd_status",
                        "Channels": "smd_channels",
                        "Shot On": "smd_shot_on",
                    },
                    "separator": ",",
                },
            }
        ],
    }


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("data/sample-migration.csv"),
        "--output",
        "-o",
        help="CSV output path.",
    ),
    prefix: str = typer.Option(
        "bulk-migrate-sample",
        "--prefix",
        help="Folder prefix for generated public ids.",
    ),
    profile_output: Optional[Path] = typer.Option(
        None,
        "--profile-output",
        help="Also write a migration profile mapping the business columns.",
    ),
) -> None:
    """
    Generate a synthetic migration CSV.
    """
    start = time.perf_counter()
    output.parent.mkdir(parents=True, exist_ok=True)

    typer.echo(f"Generating {rows:,} rows -> {output} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(output, rows=rows, batch_size=batch_size, seed=seed, prefix=prefix)
    duration = time.perf_counter() - start
    typer.echo(f"CSV generation completed in {duration:.2f}s")

    if profile_output:
        profile_output.parent.mkdir(parents=True, exist_ok=True)
        profile_output.write_text(json.dumps(_sample_profile(), indent=2), encoding="utf-8")
        typer.echo(f"Migration profile written to {profile_output}")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)

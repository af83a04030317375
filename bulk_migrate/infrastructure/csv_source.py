"""
CSV record source.

Streams rows from the migration input file one at a time so arbitrarily large
files never have to fit in memory. Each row becomes a read-only mapping of
column name -> raw cell value (None for cells missing from a short row).
"""

from __future__ import annotations

import csv
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Union

from bulk_migrate.domain.errors import RecordSourceError
from bulk_migrate.domain.models import InputRecord

PathLike = Union[str, Path]


def iter_csv_records(path: PathLike) -> Iterator[InputRecord]:
    """
    Yield input records from a CSV file with a header row.

    Raises
    ------
    RecordSourceError
        When the file cannot be opened or the stream is malformed. Raised from
        the generator, so it surfaces to whoever is pulling records.
    """
    csv_path = Path(path)
    try:
        handle = csv_path.open("r", newline="", encoding="utf-8-sig")
    except OSError as exc:
        raise RecordSourceError(f"Cannot read input file '{csv_path}': {exc}") from exc

    with handle:
        reader = csv.DictReader(handle, restval=None)
        try:
            for row in reader:
                # Cells beyond the header land under the None key; they have no column name.
                yield MappingProxyType({k: v for k, v in row.items() if k is not None})
        except (csv.Error, UnicodeDecodeError) as exc:
            raise RecordSourceError(
                f"Malformed input file '{csv_path}' near line {reader.line_num}: {exc}"
            ) from exc


def count_csv_records(path: PathLike) -> int:
    """Count data rows (header excluded) for progress reporting."""
    return sum(1 for _ in iter_csv_records(path))


__all__ = ["count_csv_records", "iter_csv_records"]

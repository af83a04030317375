from __future__ import annotations

from pathlib import Path

import pytest

from bulk_migrate.domain.errors import RecordSourceError
from bulk_migrate.infrastructure.csv_source import count_csv_records, iter_csv_records


def test_rows_are_streamed_as_read_only_mappings(tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_text("File,Tags\na.jpg,x\nb.jpg,\n", encoding="utf-8")

    records = iter_csv_records(path)
    first = next(records)

    assert dict(first) == {"File": "a.jpg", "Tags": "x"}
    with pytest.raises(TypeError):
        first["File"] = "other.jpg"  # type: ignore[index]
    assert dict(next(records)) == {"File": "b.jpg", "Tags": ""}
    assert list(records) == []


def test_short_row_keeps_column_with_none(tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_text("File,Tags,Note\na.jpg\n", encoding="utf-8")

    (record,) = list(iter_csv_records(path))

    assert dict(record) == {"File": "a.jpg", "Tags": None, "Note": None}


def test_extra_cells_are_dropped(tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_text("File\na.jpg,surplus\n", encoding="utf-8")

    (record,) = list(iter_csv_records(path))

    assert dict(record) == {"File": "a.jpg"}


def test_utf8_bom_is_stripped_from_header(tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_bytes("\ufeffFile\na.jpg\n".encode("utf-8"))

    (record,) = list(iter_csv_records(path))

    assert "File" in record


def test_missing_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(RecordSourceError, match="Cannot read input file"):
        list(iter_csv_records(tmp_path / "missing.csv"))


def test_malformed_stream_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_bytes(b"File\na.jpg\n\xff\xfe\xfa broken\n")

    with pytest.raises(RecordSourceError, match="Malformed input file"):
        list(iter_csv_records(path))


def test_count_records(tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_text("File\na\nb\nc\n", encoding="utf-8")

    assert count_csv_records(path) == 3

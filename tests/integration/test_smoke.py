"""
Smoke test against a real Cloudinary product environment.

Uploads two copies of a public sample image into a throw-away folder and
checks the run log and report.

Run with: RUN_INTEGRATION_TESTS=1 CLOUDINARY_URL=cloudinary://... pytest tests/integration/
"""

from __future__ import annotations

import csv
import os
import uuid
from pathlib import Path
from typing import Optional

import pytest

from bulk_migrate.config import Settings
from bulk_migrate.orchestrator import RunConfig, run_migration

SAMPLE_IMAGE_URL = "https://res.cloudinary.com/demo/image/upload/sample.jpg"
SMOKE_CONCURRENCY = 2

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and a reachable Cloudinary account",
)


@pytest.fixture
def live_settings(live_cloudinary_url: Optional[str]) -> Settings:
    url = live_cloudinary_url
    if not url:
        pytest.skip("CLOUDINARY_URL is not set")
    return Settings(CLOUDINARY_URL=url)


class TestLiveMigration:
    """End-to-end run against the live API."""

    def test_small_batch(self, tmp_path: Path, live_settings: Settings):
        folder = f"bulk-migrate-smoke/{uuid.uuid4().hex[:8]}"
        csv_path = tmp_path / "in.csv"
        with csv_path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(["File", "PublicId", "Tags"])
            writer.writerow([SAMPLE_IMAGE_URL, f"{folder}/one", "smoke"])
            writer.writerow([SAMPLE_IMAGE_URL, f"{folder}/two", "smoke"])

        summary = run_migration(
            RunConfig(
                input_csv=csv_path,
                output_folder=tmp_path / "out",
                concurrency=SMOKE_CONCURRENCY,
            ),
            settings=live_settings,
        )

        assert summary.attempted == 2
        assert summary.succeeded == 2
        assert summary.report_path is not None and summary.report_path.exists()

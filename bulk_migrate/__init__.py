"""
bulk-migrate - bounded-concurrency bulk migration of assets to Cloudinary.

Reads a CSV file describing assets, turns every row into an upload payload
(optionally enriched by plugins such as the structured metadata mapper),
uploads with a strict ceiling on in-flight requests and writes one durable
outcome line per row to `log.jsonl`, from which `report.csv` is derived.

A failing row never stops the batch: it is recorded as FAILED and can be
retried by feeding the failed rows of the report into a new run.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from bulk_migrate.config import Settings, get_settings
from bulk_migrate.execution import BatchEngine, RecordProcessor, RunStatistics
from bulk_migrate.orchestrator import RunConfig, RunSummary, run_migration
from bulk_migrate.payload import MigrationProfile, PayloadBuilder
from bulk_migrate.plugins import (
    AbstractPlugin,
    Plugin,
    PluginRegistry,
    StructuredMetadataMapper,
    default_registry,
)
from bulk_migrate.reporter import log_to_report
from bulk_migrate.utils.logging import configure_logging, get_logger
from bulk_migrate.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "RunConfig",
    "RunSummary",
    "run_migration",
    "log_to_report",
    # Engine
    "BatchEngine",
    "RecordProcessor",
    "RunStatistics",
    # Payload and plugins
    "MigrationProfile",
    "PayloadBuilder",
    "Plugin",
    "AbstractPlugin",
    "PluginRegistry",
    "StructuredMetadataMapper",
    "default_registry",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]

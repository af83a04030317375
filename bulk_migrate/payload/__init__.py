"""
Payload package for bulk-migrate.

Exports the migration profile (record -> base payload) and the builder that
applies enrichment plugins on top of it.
"""

from bulk_migrate.payload.builder import TEMPLATE_STEP, PayloadBuilder
from bulk_migrate.payload.template import DEFAULT_UPLOAD_OPTIONS, MigrationProfile, StepConfig

__all__ = [
    "DEFAULT_UPLOAD_OPTIONS",
    "MigrationProfile",
    "PayloadBuilder",
    "StepConfig",
    "TEMPLATE_STEP",
]

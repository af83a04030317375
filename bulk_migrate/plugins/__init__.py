"""
Enrichment plugins for bulk-migrate.

Plugins are registered explicitly by the process entry point; see
`default_registry` for the set a migration run starts with.
"""

from __future__ import annotations

from bulk_migrate.infrastructure.cloudinary import CloudinaryClient
from bulk_migrate.plugins.abstract import AbstractPlugin, Plugin
from bulk_migrate.plugins.metadata_mapper import PLUGIN_NAME as METADATA_MAPPER
from bulk_migrate.plugins.metadata_mapper import StructuredMetadataMapper, parse_date
from bulk_migrate.plugins.registry import PluginRegistry


def default_registry(client: CloudinaryClient) -> PluginRegistry:
    """
    Build a fresh, uninitialized registry with the built-in plugins.

    The structured metadata mapper reads its field definitions through
    `client` when the registry is initialized.
    """
    registry = PluginRegistry()
    registry.register(METADATA_MAPPER, StructuredMetadataMapper(client.list_metadata_fields))
    return registry


__all__ = [
    "AbstractPlugin",
    "METADATA_MAPPER",
    "Plugin",
    "PluginRegistry",
    "StructuredMetadataMapper",
    "default_registry",
    "parse_date",
]

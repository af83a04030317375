"""
Domain package for bulk-migrate.

Exports the data definitions and the error taxonomy shared by the engine,
the payload builder and the plugins. Keep this package free of I/O.
"""

from bulk_migrate.domain.errors import (
    BulkMigrateError,
    ConfigurationError,
    ConstructionError,
    FatalError,
    InitializationError,
    InvalidMappingError,
    InvalidOptionError,
    MappingError,
    MissingLocatorError,
    NotInitializedError,
    OperationError,
    PluginNotFoundError,
    PluginRegistryError,
    RecordError,
    RecordSourceError,
    RunAbortedError,
    UnsupportedFieldTypeError,
    ValueProcessingError,
    describe_error,
)
from bulk_migrate.domain.models import (
    FieldMappingConfig,
    FieldOption,
    FieldSchema,
    FieldType,
    InputRecord,
    OutcomeRecord,
    OutcomeStatus,
    Payload,
    PluginTrace,
    StepTrace,
)

__all__ = [
    # Models
    "FieldMappingConfig",
    "FieldOption",
    "FieldSchema",
    "FieldType",
    "InputRecord",
    "OutcomeRecord",
    "OutcomeStatus",
    "Payload",
    "PluginTrace",
    "StepTrace",
    # Errors
    "BulkMigrateError",
    "ConfigurationError",
    "ConstructionError",
    "FatalError",
    "InitializationError",
    "InvalidMappingError",
    "InvalidOptionError",
    "MappingError",
    "MissingLocatorError",
    "NotInitializedError",
    "OperationError",
    "PluginNotFoundError",
    "PluginRegistryError",
    "RecordError",
    "RecordSourceError",
    "RunAbortedError",
    "UnsupportedFieldTypeError",
    "ValueProcessingError",
    "describe_error",
]

"""
Typed exceptions for bulk-migrate.

Two families are kept apart:

- `FatalError` aborts the whole run. It is raised before processing starts
  (configuration, plugin registry, schema fetch) or by the record source.
- `RecordError` only ever fails the record being processed. The execution
  engine converts it into a FAILED outcome and keeps going.

Every `RecordError` carries a machine-readable `code` and a `category` so an
operator can tell "fix the mapping configuration" (`configuration`) from
"fix this row" (`data`) or "the remote system refused" (`remote`).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class BulkMigrateError(Exception):
    """Base exception for all bulk-migrate failures."""


# ---------------------------------------------------------------------------
# Fatal family
# ---------------------------------------------------------------------------


class FatalError(BulkMigrateError):
    """Process-level failure that must abort the run."""


class ConfigurationError(FatalError):
    """Settings, credentials or migration profile are missing or invalid."""


class RecordSourceError(FatalError):
    """The input data stream could not be read."""


class InitializationError(FatalError):
    """A plugin (or its remote schema) could not be initialized."""


class PluginRegistryError(FatalError):
    """Plugin registry used out of its lifecycle order."""


class PluginNotFoundError(FatalError, LookupError):
    """No plugin registered under the requested name."""

    def __init__(self, name: str, available: Optional[List[str]] = None) -> None:
        listing = ", ".join(available or []) or "none"
        super().__init__(f"Plugin '{name}' not found. Registered plugins: {listing}")
        self.name = name


class RunAbortedError(FatalError):
    """The operator declined to start the run."""


# ---------------------------------------------------------------------------
# Per-record family
# ---------------------------------------------------------------------------


class RecordError(BulkMigrateError):
    """
    Failure scoped to a single input record.

    Attributes
    ----------
    code : str
        Machine-readable error code.
    category : str
        One of `configuration`, `data`, `remote`, `programming`.
    """

    code: str = "record_error"
    category: str = "data"


class MappingError(RecordError):
    """Base class for value-mapping failures."""

    code = "mapping_error"


class NotInitializedError(MappingError):
    code = "not_initialized"
    category = "programming"

    def __init__(self, component: str = "StructuredMetadataMapper") -> None:
        super().__init__(f"{component} needs to be initialized before use")


class InvalidMappingError(MappingError):
    """The field mapping configuration does not fit the record or the schema."""

    code = "invalid_mapping"
    category = "configuration"


class ValueProcessingError(MappingError):
    """A raw value could not be converted for its target field."""

    code = "value_processing_failed"
    category = "data"

    def __init__(self, message: str, value: str, field_id: str) -> None:
        super().__init__(message)
        self.value = value
        self.field_id = field_id


class InvalidOptionError(MappingError):
    """A select value matches no active option of the target field."""

    code = "invalid_option"
    category = "data"

    def __init__(self, value: str, field_id: str) -> None:
        super().__init__(
            f"Option '{value}' not found in datasource for the field '{field_id}'"
        )
        self.value = value
        self.field_id = field_id


class UnsupportedFieldTypeError(MappingError):
    code = "unsupported_field_type"
    category = "configuration"

    def __init__(self, field_type: str, field_id: str) -> None:
        super().__init__(f"Field type not supported ({field_type}) for {field_id}")
        self.field_type = field_type
        self.field_id = field_id


class MissingLocatorError(RecordError):
    """The input record does not say where to take the asset from."""

    code = "missing_locator"
    category = "data"


class ConstructionError(RecordError):
    """
    Payload construction failed in one enrichment step.

    Attributes
    ----------
    step : str
        Identifier of the failing step.
    traces : list[dict]
        Traces gathered from the steps that ran before the failure.
    """

    code = "construction_failed"

    def __init__(
        self,
        step: str,
        cause: BaseException,
        traces: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(f"Step '{step}' failed: {cause}")
        self.step = step
        self.traces = list(traces or [])
        self.__cause__ = cause
        if isinstance(cause, RecordError):
            self.category = cause.category
        else:
            self.category = "programming"


class OperationError(RecordError):
    """
    The remote operation failed for one payload.

    Attributes
    ----------
    reason : str
        `timeout`, `network`, `rejected` or `invalid_response`.
    status_code : int | None
        HTTP status when the remote system answered.
    response : dict | None
        Parsed remote response body, when available.
    """

    code = "operation_failed"
    category = "remote"

    def __init__(
        self,
        message: str,
        reason: str,
        status_code: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code
        self.response = response


def describe_error(error: BaseException) -> Dict[str, Any]:
    """
    Render an exception (and its cause chain) as a JSON-friendly dict.
    """
    described: Dict[str, Any] = {
        "type": type(error).__name__,
        "message": str(error),
    }
    for attr in ("code", "category", "step", "reason", "status_code", "value", "field_id"):
        value = getattr(error, attr, None)
        if value is not None:
            described[attr] = value
    if isinstance(error, OperationError) and error.response is not None:
        described["response"] = error.response
    cause = error.__cause__
    if cause is not None and cause is not error:
        described["cause"] = describe_error(cause)
    return described


__all__ = [
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

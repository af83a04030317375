"""
Structured metadata mapper plugin.

Translates "business" values from input records into the values the remote
structured metadata fields accept:

- single- and multi-select labels are resolved to option external ids,
- dates are normalised to `YYYY-MM-DD`,
- text and number values pass through trimmed.

Field definitions are fetched once by `initialize()` and are read-only
afterwards, so `process()` can be called from many worker threads at once.

Accepted date grammar (anything else is rejected, nothing is guessed)::

    YYYY<sep>MM<sep>DD[(T| )HH:MM[:SS[.ffffff]][Z|+HH:MM|-HH:MM]]

where `<sep>` is one of `-`, `/` or `.` and is the same for both positions.
The calendar date is taken as written; no timezone conversion is applied.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from bulk_migrate.domain.errors import (
    InitializationError,
    InvalidMappingError,
    InvalidOptionError,
    NotInitializedError,
    UnsupportedFieldTypeError,
    ValueProcessingError,
)
from bulk_migrate.domain.models import (
    FieldMappingConfig,
    FieldSchema,
    FieldType,
    InputRecord,
    MetadataValue,
    Payload,
)
from bulk_migrate.plugins.abstract import AbstractPlugin
from bulk_migrate.utils.logging import get_logger

log = get_logger(__name__)

PLUGIN_NAME = "structured-metadata-mapper"

_DATE_PATTERN = re.compile(
    r"^(?P<year>\d{4})(?P<sep>[-/.])(?P<month>\d{1,2})(?P=sep)(?P<day>\d{1,2})"
    r"(?:[T ](?P<hour>\d{1,2}):(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:\.(?P<fraction>\d{1,6}))?)?"
    r"(?P<tz>Z|[+-]\d{2}:?\d{2})?)?$"
)


def parse_date(value: str) -> str:
    """
    Parse `value` with the accepted date grammar and return `YYYY-MM-DD`.

    Raises
    ------
    ValueError
        When the value does not match the grammar or is not a real calendar
        date/time.
    """
    match = _DATE_PATTERN.match(value)
    if match is None:
        raise ValueError(
            f"'{value}' does not match YYYY-MM-DD[ HH:MM[:SS]] "
            "(separators '-', '/' or '.')"
        )
    parts = match.groupdict()
    parsed = datetime(
        int(parts["year"]),
        int(parts["month"]),
        int(parts["day"]),
        int(parts["hour"] or 0),
        int(parts["minute"] or 0),
        int(parts["second"] or 0),
    )
    return parsed.date().isoformat()


class _SelectIndex:
    """Case-insensitive external id / label lookups over active options."""

    __slots__ = ("by_id", "by_label")

    def __init__(self, schema: FieldSchema) -> None:
        self.by_id: Dict[str, str] = {}
        self.by_label: Dict[str, str] = {}
        for option in schema.options:
            if not option.active:
                continue
            self.by_id.setdefault(option.external_id.casefold(), option.external_id)
            self.by_label.setdefault(option.label.casefold(), option.external_id)

    def resolve(self, value: str) -> Optional[str]:
        key = value.strip().casefold()
        if key in self.by_id:
            return self.by_id[key]
        return self.by_label.get(key)


class StructuredMetadataMapper(AbstractPlugin):
    """
    Maps input record columns onto typed structured metadata fields.

    Parameters
    ----------
    schema_loader : callable
        Returns the field definitions. Called once by `initialize()`.
    """

    name: str = PLUGIN_NAME

    def __init__(self, schema_loader: Callable[[], Iterable[FieldSchema]]) -> None:
        self._schema_loader = schema_loader
        self._fields: Optional[Dict[str, FieldSchema]] = None
        self._select_indexes: Dict[str, _SelectIndex] = {}

    @property
    def fields(self) -> Dict[str, FieldSchema]:
        if self._fields is None:
            raise NotInitializedError()
        return self._fields

    def initialize(self) -> None:
        try:
            schemas = list(self._schema_loader())
        except InitializationError:
            raise
        except Exception as exc:
            raise InitializationError(f"Failed to fetch field definitions: {exc}") from exc

        fields: Dict[str, FieldSchema] = {}
        for schema in schemas:
            if schema.external_id in fields:
                raise InitializationError(
                    f"Duplicate field external_id in schema: '{schema.external_id}'"
                )
            fields[schema.external_id] = schema

        self._select_indexes = {
            external_id: _SelectIndex(schema)
            for external_id, schema in fields.items()
            if schema.type in (FieldType.SINGLE_SELECT.value, FieldType.MULTI_SELECT.value)
        }
        self._fields = fields
        log.info(
            "Structured metadata field definitions loaded",
            extra={"plugin": self.name, "fields": len(fields)},
        )

    def process(
        self,
        payload: Payload,
        record: InputRecord,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Resolve configured columns and merge them into `payload` metadata.

        Parameters
        ----------
        payload : Payload
            Payload under construction; only its metadata map is changed.
        record : InputRecord
            Raw input record.
        options : Mapping | None
            `{"mapping": {column: field_external_id}, "separator": ","}`.

        Returns
        -------
        dict
            Trace with the `written` field values and the `skipped` columns.

        Raises
        ------
        NotInitializedError
            If called before `initialize()`.
        InvalidMappingError
            If the mapping does not fit the record or the schema.
        ValueProcessingError
            If a date value cannot be parsed.
        InvalidOptionError
            If a select value matches no active option.
        UnsupportedFieldTypeError
            If a target field has a type this mapper cannot produce.
        """
        fields = self.fields
        try:
            config = FieldMappingConfig.from_options(options or {})
        except (TypeError, ValueError) as exc:
            raise InvalidMappingError(f"Mapping configuration is malformed: {exc}") from exc
        self._validate(config, record, fields)

        resolved: Dict[str, MetadataValue] = {}
        skipped: List[str] = []
        for column, field_id in config.mapping:
            raw = record.get(column)
            value = raw.strip() if raw is not None else ""
            if not value:
                skipped.append(column)
                continue
            resolved[field_id] = self._resolve_value(fields[field_id], value, config.separator)

        metadata: Dict[str, MetadataValue] = dict(payload.metadata or {})
        metadata.update(resolved)
        payload.set_metadata(metadata)

        return {"written": resolved, "skipped": skipped}

    def map(
        self,
        payload: Payload,
        record: InputRecord,
        config: FieldMappingConfig,
    ) -> Dict[str, Any]:
        """Typed entry point equivalent to `process()` with a prepared config."""
        return self.process(
            payload,
            record,
            {"mapping": list(config.mapping), "separator": config.separator},
        )

    @staticmethod
    def _validate(
        config: FieldMappingConfig,
        record: InputRecord,
        fields: Mapping[str, FieldSchema],
    ) -> None:
        if not config.mapping:
            raise InvalidMappingError("Mapping configuration is required and must not be empty")

        seen: set = set()
        for _, field_id in config.mapping:
            if field_id in seen:
                raise InvalidMappingError(f"Duplicate target field found: '{field_id}'")
            seen.add(field_id)

        for column, _ in config.mapping:
            if column not in record:
                raise InvalidMappingError(f"Input column '{column}' not found in input fields")

        for _, field_id in config.mapping:
            if field_id not in fields:
                raise InvalidMappingError(
                    f"Field external_id '{field_id}' not found in metadata structure"
                )

    def _resolve_value(self, schema: FieldSchema, value: str, separator: str) -> MetadataValue:
        field_type = schema.type
        if field_type in (FieldType.TEXT.value, FieldType.NUMBER.value):
            return value
        if field_type == FieldType.DATE.value:
            try:
                return parse_date(value)
            except ValueError as exc:
                raise ValueProcessingError(
                    f"Failed to process '{value}' value for the field '{schema.external_id}'",
                    value=value,
                    field_id=schema.external_id,
                ) from exc
        if field_type == FieldType.SINGLE_SELECT.value:
            return self._resolve_option(schema, value)
        if field_type == FieldType.MULTI_SELECT.value:
            return [self._resolve_option(schema, part.strip()) for part in value.split(separator)]
        raise UnsupportedFieldTypeError(field_type, schema.external_id)

    def _resolve_option(self, schema: FieldSchema, value: str) -> str:
        resolved = self._select_indexes[schema.external_id].resolve(value)
        if resolved is None:
            raise InvalidOptionError(value, schema.external_id)
        return resolved


__all__ = ["PLUGIN_NAME", "StructuredMetadataMapper", "parse_date"]

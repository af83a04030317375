"""
Domain models for bulk-migrate.

Defines the input record shape, the remote field schema used by the value
mapper, the outbound operation payload and the durable outcome record.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypedDict, Union

from pydantic import BaseModel, Field

InputRecord = Mapping[str, Optional[str]]
"""One row of input: field name -> raw string value (None when absent)."""

MetadataValue = Union[str, List[str]]


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"


class FieldOption(BaseModel):
    """One allowed value of a select field."""

    external_id: str = Field(..., description="Canonical identifier stored by the remote field.")
    label: str = Field(..., description="Human-readable label.")
    active: bool = Field(True, description="Only active options are eligible for matching.")

    model_config = {"frozen": True}


class FieldSchema(BaseModel):
    """
    Remotely-defined typed field.

    `type` holds a `FieldType` value for supported types; anything else is kept
    verbatim so that mapping to such a field fails loudly instead of silently.
    """

    external_id: str
    type: str
    label: Optional[str] = None
    options: Tuple[FieldOption, ...] = ()

    model_config = {"frozen": True}


class FieldMappingConfig(BaseModel):
    """
    Source column -> target field mapping for the structured metadata mapper.

    `mapping` is kept as ordered pairs so that a target configured twice is
    still visible to validation.
    """

    mapping: Tuple[Tuple[str, str], ...] = ()
    separator: str = ","

    model_config = {"frozen": True}

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "FieldMappingConfig":
        options = options or {}
        raw_mapping = options.get("mapping")
        pairs: Tuple[Tuple[str, str], ...] = ()
        if isinstance(raw_mapping, Mapping):
            pairs = tuple((str(k), str(v)) for k, v in raw_mapping.items())
        elif isinstance(raw_mapping, (list, tuple)):
            pairs = tuple((str(k), str(v)) for k, v in raw_mapping)
        return cls(mapping=pairs, separator=options.get("separator") or ",")


@dataclass(frozen=True)
class Payload:
    """
    Outbound request for one input record.

    The asset locator is fixed once built; only `options` (and the metadata map
    inside it) may be changed by enrichment steps.
    """

    file: str
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def metadata(self) -> Optional[Dict[str, MetadataValue]]:
        return self.options.get("metadata")

    def set_metadata(self, metadata: Dict[str, MetadataValue]) -> None:
        if metadata:
            self.options["metadata"] = metadata
        else:
            self.options.pop("metadata", None)

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "options": self.options}


class StepTrace(TypedDict):
    """Trace entry produced by one enrichment step."""

    name: str
    trace: Any


PluginTrace = List[StepTrace]


class OutcomeStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class OutcomeRecord(BaseModel):
    """
    Durable result of processing one input record.

    Created once, written to the run log right away and never changed.
    """

    input: Dict[str, Optional[str]]
    payload: Optional[Dict[str, Any]] = None
    response: Optional[Dict[str, Any]] = None
    status: OutcomeStatus
    error: Optional[Dict[str, Any]] = None
    plugins_trace: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


__all__ = [
    "FieldMappingConfig",
    "FieldOption",
    "FieldSchema",
    "FieldType",
    "InputRecord",
    "MetadataValue",
    "OutcomeRecord",
    "OutcomeStatus",
    "Payload",
    "PluginTrace",
    "StepTrace",
]

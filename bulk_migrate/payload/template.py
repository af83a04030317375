"""
Migration profile: how one input record becomes an upload payload.

The profile is plain JSON validated by pydantic, e.g.::

    {
      "file_column": "Asset URL",
      "public_id_column": "Asset Id",
      "tags_column": "Keywords",
      "caption_column": "Description",
      "upload_options": {"overwrite": false, "resource_type": "auto"},
      "metadata_columns": {"smd_text_field": "Notes"},
      "steps": [
        {
          "plugin": "structured-metadata-mapper",
          "options": {"mapping": {"Status": "smd_status"}, "separator": ";"}
        }
      ]
    }

`metadata_columns` assigns raw column values to metadata fields as-is; use
the structured metadata mapper step when labels must be resolved to ids or
dates reformatted.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from bulk_migrate.domain.errors import (
    ConfigurationError,
    InvalidMappingError,
    MissingLocatorError,
)
from bulk_migrate.domain.models import InputRecord, Payload

DEFAULT_UPLOAD_OPTIONS: Dict[str, Any] = {
    "unique_filename": False,  # keep public_id exactly as given
    "resource_type": "auto",
    "overwrite": False,  # never replace assets that already exist
    "type": "upload",
}


class StepConfig(BaseModel):
    """One enrichment step applied by the payload builder."""

    plugin: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, description="Step identifier in traces; defaults to plugin.")
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def step_id(self) -> str:
        return self.name or self.plugin


class MigrationProfile(BaseModel):
    file_column: str = Field("File", min_length=1)
    public_id_column: Optional[str] = "PublicId"
    tags_column: Optional[str] = "Tags"
    caption_column: Optional[str] = None
    upload_options: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_UPLOAD_OPTIONS))
    metadata_columns: Dict[str, str] = Field(default_factory=dict)
    steps: List[StepConfig] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "forbid"}

    @classmethod
    def load(cls, path: Union[str, Path]) -> "MigrationProfile":
        """
        Read and validate a JSON profile.

        Raises
        ------
        ConfigurationError
            When the file is unreadable or does not validate.
        """
        profile_path = Path(path)
        try:
            raw = profile_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read migration profile '{profile_path}': {exc}"
            ) from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid migration profile '{profile_path}': {exc}") from exc

    def to_payload(self, record: InputRecord) -> Payload:
        """Build the base payload (locator + static options) for one record."""
        if self.file_column not in record:
            raise InvalidMappingError(
                f"Locator column '{self.file_column}' not found in input fields"
            )
        file = (record.get(self.file_column) or "").strip()
        if not file:
            raise MissingLocatorError(f"Column '{self.file_column}' is empty")

        options: Dict[str, Any] = copy.deepcopy(self.upload_options)
        public_id = _cell(record, self.public_id_column)
        if public_id:
            options["public_id"] = public_id
        tags = _cell(record, self.tags_column)
        if tags:
            options["tags"] = [tag.strip() for tag in tags.split(",") if tag.strip()]
        caption = _cell(record, self.caption_column)
        if caption:
            options["context"] = {**(options.get("context") or {}), "caption": caption}

        payload = Payload(file=file, options=options)
        static_metadata = {
            field_id: value
            for field_id, column in self.metadata_columns.items()
            if (value := _cell(record, column))
        }
        if static_metadata:
            payload.set_metadata({**(payload.metadata or {}), **static_metadata})
        return payload


def _cell(record: InputRecord, column: Optional[str]) -> str:
    if not column:
        return ""
    return (record.get(column) or "").strip()


__all__ = ["DEFAULT_UPLOAD_OPTIONS", "MigrationProfile", "StepConfig"]

"""
Cloudinary API access through the official `cloudinary` SDK.

Provides:

- `CloudinaryClient` - binds one set of credentials and a request timeout to
  the SDK calls made during a run,
- `list_metadata_fields()` - Admin API schema fetch used once at startup
  (transport failures are retried with tenacity),
- `UploadOperation` - the per-record remote operation (`cloudinary.uploader.upload`).
  It never retries; any failure becomes an `OperationError` for that record.

Credentials are passed with every call instead of relying on the SDK's global
configuration, so one process can hold clients for different environments.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.exceptions import HTTPError as TransportError
from urllib3.exceptions import MaxRetryError
from urllib3.exceptions import TimeoutError as TransportTimeout

from bulk_migrate.config import CloudCredentials
from bulk_migrate.domain.errors import InitializationError, OperationError
from bulk_migrate.domain.models import FieldOption, FieldSchema, FieldType, Payload
from bulk_migrate.utils.logging import get_logger

log = get_logger(__name__)

# Cloudinary API type names -> field types understood by the metadata mapper.
_API_FIELD_TYPES: Dict[str, FieldType] = {
    "string": FieldType.TEXT,
    "integer": FieldType.NUMBER,
    "date": FieldType.DATE,
    "enum": FieldType.SINGLE_SELECT,
    "set": FieldType.MULTI_SELECT,
}

_SCHEMA_FETCH_WAIT = wait_exponential(multiplier=1, min=1, max=10)


def field_schema_from_api(definition: Mapping[str, Any]) -> FieldSchema:
    """
    Convert one Admin API metadata field definition into a `FieldSchema`.

    Unknown API types are kept verbatim so mapping to them fails at map time.
    """
    api_type = str(definition.get("type", ""))
    field_type = _API_FIELD_TYPES.get(api_type)
    datasource = definition.get("datasource") or {}
    options = tuple(
        FieldOption(
            external_id=str(value["external_id"]),
            label=str(value.get("value", "")),
            active=value.get("state", "active") == "active",
        )
        for value in datasource.get("values") or []
    )
    return FieldSchema(
        external_id=str(definition["external_id"]),
        type=field_type.value if field_type else api_type,
        label=definition.get("label"),
        options=options,
    )


def failure_reason(exc: CloudinaryError) -> str:
    """
    Name the kind of failure behind an SDK error.

    The SDK wraps transport failures and unparseable responses in its own
    `Error`; the original exception stays reachable as the cause or context.

    Returns
    -------
    str
        `timeout`, `network`, `invalid_response` or `rejected`.
    """
    cause = exc.__cause__ or exc.__context__
    if isinstance(cause, MaxRetryError) and cause.reason is not None:
        cause = cause.reason
    if isinstance(cause, (TransportTimeout, TimeoutError)):
        return "timeout"
    if isinstance(cause, (TransportError, OSError)):
        return "network"
    if isinstance(cause, ValueError):
        return "invalid_response"
    return "rejected"


def _is_transport_failure(exc: BaseException) -> bool:
    return isinstance(exc, CloudinaryError) and failure_reason(exc) in ("timeout", "network")


class CloudinaryClient:
    """
    Cloudinary SDK calls bound to one product environment.

    Parameters
    ----------
    credentials : CloudCredentials
        Cloud name, API key and secret.
    timeout_seconds : float
        Timeout applied to every request.
    schema_fetch_attempts : int
        Attempts for the startup schema fetch on transport failures.
    """

    def __init__(
        self,
        credentials: CloudCredentials,
        timeout_seconds: float = 60.0,
        schema_fetch_attempts: int = 3,
    ) -> None:
        self.credentials = credentials
        self.timeout_seconds = timeout_seconds
        self.schema_fetch_attempts = schema_fetch_attempts

    def _call_options(self) -> Dict[str, Any]:
        return {
            "cloud_name": self.credentials.cloud_name,
            "api_key": self.credentials.api_key,
            "api_secret": self.credentials.api_secret,
            "timeout": self.timeout_seconds,
        }

    def list_metadata_fields(self) -> List[FieldSchema]:
        """
        Fetch structured metadata field definitions.

        Raises
        ------
        InitializationError
            When the Admin API cannot be reached or refuses the request.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.schema_fetch_attempts),
            wait=_SCHEMA_FETCH_WAIT,
            retry=retry_if_exception(_is_transport_failure),
            reraise=True,
        )
        try:
            body = retrying(cloudinary.api.list_metadata_fields, **self._call_options())
        except CloudinaryError as exc:
            raise InitializationError(f"Metadata fields request failed: {exc}") from exc

        fields = body.get("metadata_fields") if isinstance(body, Mapping) else None
        if not isinstance(fields, list):
            raise InitializationError("Metadata fields response has no 'metadata_fields' list")
        log.info("Fetched metadata field definitions", extra={"fields": len(fields)})
        return [field_schema_from_api(definition) for definition in fields]

    def upload(self, file: str, options: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Upload one asset (remote URL or local path).

        Raises
        ------
        OperationError
            `timeout`, `network`, `rejected` or `invalid_response`.
        """
        call_options = {key: value for key, value in options.items() if value is not None}
        call_options.update(self._call_options())
        try:
            response = cloudinary.uploader.upload(file, **call_options)
        except CloudinaryError as exc:
            reason = failure_reason(exc)
            message = str(exc) if reason == "rejected" else f"Upload failed: {exc}"
            raise OperationError(message, reason=reason) from exc
        except OSError as exc:
            raise OperationError(
                f"Cannot read local file '{file}': {exc}", reason="rejected"
            ) from exc

        if not isinstance(response, Mapping):
            raise OperationError("Upload response is not a JSON object", reason="invalid_response")
        return dict(response)


class UploadOperation:
    """Remote operation: upload (or update) one asset from a payload."""

    name = "upload"

    def __init__(self, client: CloudinaryClient) -> None:
        self._client = client

    def invoke(self, payload: Payload) -> Dict[str, Any]:
        return self._client.upload(payload.file, payload.options)


def classify_response(response: Optional[Mapping[str, Any]]) -> str:
    """Name the upload outcome reported by the remote system."""
    if not response:
        return "Uploaded"
    if response.get("overwritten") is True:
        return "Overwritten"
    if response.get("existing") is True:
        return "SkippedAlreadyExists"
    return "Uploaded"


__all__ = [
    "CloudinaryClient",
    "UploadOperation",
    "classify_response",
    "failure_reason",
    "field_schema_from_api",
]

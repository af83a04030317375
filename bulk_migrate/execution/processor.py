"""
Per-record processing: build the payload, invoke the remote operation and
turn the result (or the failure) into exactly one `OutcomeRecord`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from bulk_migrate.domain.errors import ConstructionError, RecordError, describe_error
from bulk_migrate.domain.models import (
    InputRecord,
    OutcomeRecord,
    OutcomeStatus,
    Payload,
    StepTrace,
)
from bulk_migrate.payload.builder import PayloadBuilder
from bulk_migrate.utils.logging import get_logger

log = get_logger(__name__)


class RemoteOperation(Protocol):
    """Create/update call against the remote API; raises `OperationError`."""

    def invoke(self, payload: Payload) -> Dict[str, Any]:
        ...


class RecordProcessor:
    """
    Callable `record -> OutcomeRecord` used as the engine's `process_one`.

    Never raises for a single record's failure: `RecordError`s are recorded
    with their code and category, anything else is logged with its traceback
    and recorded as a `programming` failure.
    """

    def __init__(self, builder: PayloadBuilder, operation: RemoteOperation) -> None:
        self._builder = builder
        self._operation = operation

    def __call__(self, record: InputRecord) -> OutcomeRecord:
        payload: Optional[Payload] = None
        traces: List[StepTrace] = []
        try:
            payload, traces = self._builder.build(record)
            response = self._operation.invoke(payload)
        except ConstructionError as exc:
            return self._failed(record, None, exc.traces, exc)
        except RecordError as exc:
            return self._failed(record, payload, traces, exc)
        except Exception as exc:  # noqa: BLE001 - one record must not stop the batch
            log.exception("Unexpected error while processing record")
            return self._failed(record, payload, traces, exc, category="programming")

        return OutcomeRecord(
            input=dict(record),
            payload=payload.to_dict(),
            response=response,
            status=OutcomeStatus.SUCCEEDED,
            plugins_trace=list(traces),
        )

    @staticmethod
    def _failed(
        record: InputRecord,
        payload: Optional[Payload],
        traces: List[Any],
        error: BaseException,
        category: Optional[str] = None,
    ) -> OutcomeRecord:
        described = describe_error(error)
        if category is not None:
            described.setdefault("category", category)
        response = described.get("response")
        return OutcomeRecord(
            input=dict(record),
            payload=payload.to_dict() if payload is not None else None,
            response=response if isinstance(response, dict) else None,
            status=OutcomeStatus.FAILED,
            error=described,
            plugins_trace=list(traces),
        )


__all__ = ["RecordProcessor", "RemoteOperation"]

from __future__ import annotations

from typing import Any, Dict, List, Optional

from bulk_migrate.domain.errors import OperationError
from bulk_migrate.domain.models import OutcomeStatus, Payload
from bulk_migrate.execution.processor import RecordProcessor
from bulk_migrate.payload.builder import PayloadBuilder
from bulk_migrate.payload.template import MigrationProfile, StepConfig
from bulk_migrate.plugins.metadata_mapper import PLUGIN_NAME
from bulk_migrate.plugins.registry import PluginRegistry

STEPS = [StepConfig(plugin=PLUGIN_NAME, options={"mapping": {"SSL": "smd_ssl"}})]


class _FakeOperation:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.payloads: List[Payload] = []

    def invoke(self, payload: Payload) -> Dict[str, Any]:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return {"public_id": payload.options.get("public_id"), "etag": "e"}


def _processor(mapper, operation) -> RecordProcessor:
    registry = PluginRegistry()
    registry.register(PLUGIN_NAME, mapper)
    registry.initialize()
    builder = PayloadBuilder(MigrationProfile().to_payload, registry, STEPS)
    return RecordProcessor(builder, operation)


def test_success_outcome(mapper) -> None:
    operation = _FakeOperation()

    outcome = _processor(mapper, operation)({"File": "a.jpg", "PublicId": "a", "SSL": "ssl_a"})

    assert outcome.status is OutcomeStatus.SUCCEEDED
    assert outcome.payload["options"]["metadata"] == {"smd_ssl": "ssl_a"}
    assert outcome.response == {"public_id": "a", "etag": "e"}
    assert outcome.plugins_trace[0]["name"] == PLUGIN_NAME
    assert outcome.error is None


def test_construction_failure_has_no_payload_and_no_remote_call(mapper) -> None:
    operation = _FakeOperation()

    outcome = _processor(mapper, operation)({"File": "a.jpg", "SSL": "nope"})

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.payload is None
    assert operation.payloads == []
    assert outcome.error["type"] == "ConstructionError"
    assert outcome.error["category"] == "data"
    assert outcome.error["cause"]["code"] == "invalid_option"


def test_configuration_defect_is_distinguishable_from_data_defect(mapper) -> None:
    outcome = _processor(mapper, _FakeOperation())({"File": "a.jpg"})

    assert outcome.error["category"] == "configuration"
    assert outcome.error["cause"]["code"] == "invalid_mapping"
    assert "'SSL'" in outcome.error["cause"]["message"]


def test_remote_failure_keeps_payload_and_response(mapper) -> None:
    error = OperationError(
        "Upload rejected", reason="rejected", status_code=400, response={"error": {"message": "x"}}
    )

    outcome = _processor(mapper, _FakeOperation(error))({"File": "a.jpg", "SSL": "ssl_a"})

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.payload["file"] == "a.jpg"
    assert outcome.response == {"error": {"message": "x"}}
    assert outcome.error["reason"] == "rejected"
    assert outcome.error["status_code"] == 400
    assert outcome.error["category"] == "remote"


def test_unexpected_error_is_contained(mapper) -> None:
    processor = _processor(mapper, _FakeOperation(KeyError("boom")))

    outcome = processor({"File": "a.jpg", "SSL": "ssl_a"})

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error["type"] == "KeyError"
    assert outcome.error["category"] == "programming"

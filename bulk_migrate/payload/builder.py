"""
Payload builder.

Turns one input record into an upload payload: the migration profile builds
the base payload, then every configured enrichment step (plugin) runs in the
declared order and may adjust the payload options. Step traces are collected
in execution order; when a step fails, the traces of the steps that already
ran travel with the `ConstructionError` so they still reach the run log.
"""

from __future__ import annotations

from typing import Any, Callable, List, Sequence, Tuple

from bulk_migrate.domain.errors import ConstructionError
from bulk_migrate.domain.models import InputRecord, Payload, PluginTrace, StepTrace
from bulk_migrate.payload.template import StepConfig
from bulk_migrate.plugins.abstract import Plugin
from bulk_migrate.plugins.registry import PluginRegistry

TEMPLATE_STEP = "template"


class PayloadBuilder:
    """
    Parameters
    ----------
    template : callable
        Builds the base payload from a record (usually `MigrationProfile.to_payload`).
    registry : PluginRegistry
        Initialized registry; every step's plugin is looked up here, once.
    steps : sequence of StepConfig
        Enrichment steps in application order.

    Raises
    ------
    PluginNotFoundError
        At construction, when a step names an unregistered plugin.
    """

    def __init__(
        self,
        template: Callable[[InputRecord], Payload],
        registry: PluginRegistry,
        steps: Sequence[StepConfig] = (),
    ) -> None:
        self._template = template
        self._steps: List[Tuple[StepConfig, Plugin]] = [
            (step, registry.lookup(step.plugin)) for step in steps
        ]

    @property
    def step_ids(self) -> List[str]:
        return [step.step_id for step, _ in self._steps]

    def build(self, record: InputRecord) -> Tuple[Payload, PluginTrace]:
        try:
            payload = self._template(record)
        except Exception as exc:
            raise ConstructionError(TEMPLATE_STEP, exc) from exc

        traces: PluginTrace = []
        for step, plugin in self._steps:
            try:
                trace: Any = plugin.process(payload, record, step.options)
            except Exception as exc:
                raise ConstructionError(step.step_id, exc, traces) from exc
            traces.append(StepTrace(name=step.step_id, trace=trace))
        return payload, traces


__all__ = ["PayloadBuilder", "TEMPLATE_STEP"]

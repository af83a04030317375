"""
Plugin interface for payload enrichment steps.

Concrete plugins (e.g., the structured metadata mapper) implement the Plugin
protocol so the payload builder can apply them in a caller-declared order.
"""

from __future__ import annotations

import abc
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from bulk_migrate.domain.models import InputRecord, Payload


@runtime_checkable
class Plugin(Protocol):
    """
    Common interface all enrichment plugins must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    """

    name: str

    def initialize(self) -> None:
        """
        Prepare the plugin once, before any record is processed.

        Raises
        ------
        InitializationError
            When the plugin cannot become usable (fatal to the run).
        """
        ...

    def process(
        self,
        payload: Payload,
        record: InputRecord,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Enrich `payload.options` from `record` and return a trace object.

        Parameters
        ----------
        payload : Payload
            Payload under construction. Only its options region may change.
        record : InputRecord
            Raw input record (read-only).
        options : Mapping | None
            Step options declared in the migration profile.
        """
        ...


class AbstractPlugin(abc.ABC):
    """
    Optional ABC helper for class-based plugins.

    Subclasses should set `name` and implement `process`; `initialize` is a
    no-op unless overridden.
    """

    name: str

    def initialize(self) -> None:
        return None

    @abc.abstractmethod
    def process(
        self,
        payload: Payload,
        record: InputRecord,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:  # pragma: no cover - interface only
        """Enrich the payload and return a trace."""
        raise NotImplementedError


__all__ = ["AbstractPlugin", "Plugin"]

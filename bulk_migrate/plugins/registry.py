"""
Explicit plugin registry.

Plugins are registered by name at startup, initialized exactly once, and then
looked up by the payload builder. There is no filesystem discovery: the entry
point decides which plugins exist.
"""

from __future__ import annotations

import threading
from typing import Dict, List

from bulk_migrate.domain.errors import (
    InitializationError,
    PluginNotFoundError,
    PluginRegistryError,
)
from bulk_migrate.plugins.abstract import Plugin
from bulk_migrate.utils.logging import get_logger

log = get_logger(__name__)


class PluginRegistry:
    """
    Name -> plugin table with a one-shot initialization lifecycle.
    """

    def __init__(self) -> None:
        self._plugins: Dict[str, Plugin] = {}
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def register(self, name: str, plugin: Plugin) -> None:
        if not isinstance(plugin, Plugin):
            raise PluginRegistryError(
                f"Plugin '{name}' must provide initialize() and process() methods"
            )
        with self._lock:
            if self._initialized:
                raise PluginRegistryError(
                    f"Cannot register plugin '{name}' after the registry has been initialized"
                )
            if name in self._plugins:
                raise PluginRegistryError(f"Plugin '{name}' is already registered")
            self._plugins[name] = plugin

    def names(self) -> List[str]:
        return list(self._plugins)

    def initialize(self) -> None:
        """
        Initialize every registered plugin, in registration order.

        Raises
        ------
        PluginRegistryError
            If called more than once.
        InitializationError
            If any plugin fails to initialize.
        """
        with self._lock:
            if self._initialized:
                raise PluginRegistryError("Plugin registry has already been initialized")
            self._initialized = True

        for name, plugin in self._plugins.items():
            try:
                plugin.initialize()
            except InitializationError:
                log.error("Failed to initialize plugin", extra={"plugin": name})
                raise
            except Exception as exc:
                log.error("Failed to initialize plugin", extra={"plugin": name})
                raise InitializationError(f"Plugin '{name}' failed to initialize: {exc}") from exc
            log.info(f"Loaded plugin: {name}", extra={"plugin": name})

    def lookup(self, name: str) -> Plugin:
        if not self._initialized:
            raise PluginRegistryError(
                f"Plugin '{name}' requested before the registry was initialized"
            )
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(name, self.names()) from None


__all__ = ["PluginRegistry"]

"""Plugin discovery, loading, and failure-isolated hook calls.

Discovery: entry points in the ``fifoctl.plugins`` group via pluggy's
setuptools loader, plus direct registration of plugin instances.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from fifoctl.plugins.hookspecs import FifoctlHookSpec

PROJECT_NAME = "fifoctl"
ENTRY_POINT_GROUP = "fifoctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FifoctlHookSpec)

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins. Returns the names of all registered plugins."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_classes()
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def notify(self, hook_name: str, **payload: Any) -> bool:
        """Call *hook_name* on every plugin.

        INVARIANT: Plugin failures are warnings, never errors. Returns False
        if a plugin raised.
        """
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return True
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return False
        return True

    def _instantiate_classes(self) -> None:
        """Replace entry points that registered a class with an instance of it.

        Hook calls against a class leave ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", plugin_name, exc_info=True)
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

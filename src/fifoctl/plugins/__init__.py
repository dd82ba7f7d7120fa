"""Extension layer: dispatch observers via pluggy.

INVARIANT: Plugin failures are warnings, never errors.
"""

from fifoctl.plugins.hookspecs import hookimpl
from fifoctl.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]

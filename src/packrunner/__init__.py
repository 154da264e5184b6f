"""packrunner: run question packs against a document QA service."""
from __future__ import annotations

import importlib
import logging
import os
from typing import Iterable, List, Optional

from .version import __version__

__all__ = ["__version__", "PluginError", "bootstrap", "load_plugins", "plugin_modules"]

PLUGINS_ENV = "PACKRUNNER_PLUGINS"

logger = logging.getLogger(__name__)

_BOOTSTRAPPED = False


class PluginError(RuntimeError):
    """A configured plugin module could not be loaded."""


def plugin_modules(value: Optional[str] = None) -> List[str]:
    """Module names from a comma separated list, defaulting to ``$PACKRUNNER_PLUGINS``."""

    if value is None:
        value = os.environ.get(PLUGINS_ENV, "")
    names: List[str] = []
    for item in value.split(","):
        name = item.strip()
        if name and name not in names:
            names.append(name)
    return names


def load_plugins(names: Iterable[str]) -> List[str]:
    """Import each module and call its ``register()`` hook.

    Plugins use the hook to add QA backends to ``backend_manager``.
    """

    loaded: List[str] = []
    for name in names:
        try:
            module = importlib.import_module(name)
        except ImportError as exc:
            raise PluginError(f"Cannot import plugin {name!r}: {exc}") from exc
        register = getattr(module, "register", None)
        if not callable(register):
            raise PluginError(f"Plugin {name!r} has no register() function")
        register()
        logger.debug("Loaded plugin %s", name)
        loaded.append(name)
    return loaded


def bootstrap(plugins: Optional[Iterable[str]] = None) -> None:
    """Register the built-in QA backends and then the plugins.

    ``plugins`` defaults to the modules named in ``$PACKRUNNER_PLUGINS``.
    Only the first successful call has an effect.
    """

    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return
    from .backends.builtins import register_builtin_backends

    register_builtin_backends()
    load_plugins(plugin_modules() if plugins is None else plugins)
    _BOOTSTRAPPED = True

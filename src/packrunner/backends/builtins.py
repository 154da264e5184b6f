"""Registration of the backends shipped with packrunner."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BackendManager, QueryBackend, backend_manager
from .http import HttpQueryBackend
from .stub import StubQueryBackend

if TYPE_CHECKING:  # pragma: no cover - typing only
    from packrunner.config import RunnerConfig


def _http_factory(config: "RunnerConfig") -> QueryBackend:
    return HttpQueryBackend(
        config.endpoint,
        method=config.method,
        timeout=config.timeout,
        retries=config.retries,
    )


def _stub_factory(config: "RunnerConfig") -> QueryBackend:
    if config.responses_path:
        return StubQueryBackend.from_file(str(config.responses_path))
    return StubQueryBackend()


def register_builtin_backends(manager: BackendManager = backend_manager) -> None:
    """Register the ``http`` and ``stub`` backends (idempotent)."""

    for name, factory in (("http", _http_factory), ("stub", _stub_factory)):
        if name not in manager:
            manager.register(name, factory)

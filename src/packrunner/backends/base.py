"""QA backend abstractions."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Iterable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from packrunner.config import RunnerConfig


class QueryError(RuntimeError):
    """Raised when the QA service cannot return an answer for a prompt."""


class QueryBackend:
    """Base interface for document QA backends."""

    name: str = ""

    def preflight(self) -> None:
        """Raise if the backend cannot be used at all. Called once before a run."""

    def query(self, project_id: str, prompt: str) -> str:
        raise NotImplementedError

    def close(self) -> None:
        pass


BackendFactory = Callable[["RunnerConfig"], QueryBackend]


class BackendManager:
    """Registry of backend factories keyed by name."""

    def __init__(self) -> None:
        self._factories: Dict[str, BackendFactory] = {}

    def register(self, name: str, factory: BackendFactory) -> None:
        if name in self._factories:
            raise ValueError(f"Backend '{name}' already registered")
        self._factories[name] = factory

    def create(self, name: str, config: "RunnerConfig") -> QueryBackend:
        try:
            factory = self._factories[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._factories)) or "none"
            raise KeyError(f"No backend registered as {name!r} (available: {available})") from exc
        return factory(config)

    def names(self) -> Iterable[str]:
        return tuple(self._factories.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._factories


backend_manager = BackendManager()

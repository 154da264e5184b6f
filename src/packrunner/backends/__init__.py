"""QA backend exports."""
from .base import BackendManager, QueryBackend, QueryError, backend_manager
from .http import HttpQueryBackend
from .stub import StubQueryBackend, StubResponse

__all__ = [
    "BackendManager",
    "QueryBackend",
    "QueryError",
    "backend_manager",
    "HttpQueryBackend",
    "StubQueryBackend",
    "StubResponse",
]

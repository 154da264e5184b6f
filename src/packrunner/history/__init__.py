"""Test history storage."""
from .store import HistoryError, HistoryRepository, InMemoryHistoryStore, JsonHistoryStore

__all__ = [
    "HistoryError",
    "HistoryRepository",
    "InMemoryHistoryStore",
    "JsonHistoryStore",
]

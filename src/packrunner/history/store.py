"""Test history repositories keeping one saved run per pack/project pair."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from jsonschema import Draft7Validator

from packrunner.core.models import QuestionPack
from packrunner.core.results import SavedTestResult, TestRun, history_key, utcnow

from .schema import HISTORY_FORMAT_VERSION, HISTORY_SCHEMA

logger = logging.getLogger(__name__)


class HistoryError(RuntimeError):
    """Raised when saved results cannot be read or written."""


class HistoryRepository:
    """Interface for test history storage. Listings are newest-saved first."""

    def save(self, run: TestRun, pack: QuestionPack, project_name: str) -> SavedTestResult:  # pragma: no cover
        raise NotImplementedError

    def delete(self, result_id: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def get_by_pack_and_project(self, pack_id: str, project_id: str) -> Optional[SavedTestResult]:  # pragma: no cover
        raise NotImplementedError

    def list_all(self) -> List[SavedTestResult]:  # pragma: no cover - interface
        raise NotImplementedError

    def clear(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def list_for_pack(self, pack_id: str) -> List[SavedTestResult]:
        return [entry for entry in self.list_all() if entry.pack_id == pack_id]

    def list_for_project(self, project_id: str) -> List[SavedTestResult]:
        return [entry for entry in self.list_all() if entry.project_id == project_id]


class InMemoryHistoryStore(HistoryRepository):
    """Process-local history. Subclasses persist through ``_commit``."""

    def __init__(self, entries: Iterable[SavedTestResult] = ()) -> None:
        self._lock = threading.Lock()
        self._entries: List[SavedTestResult] = list(entries)

    def save(self, run: TestRun, pack: QuestionPack, project_name: str) -> SavedTestResult:
        entry = SavedTestResult(
            id=history_key(run.pack_id, run.project_id),
            pack_id=run.pack_id,
            pack_name=pack.name,
            project_id=run.project_id,
            project_name=project_name,
            test_run=run,
            created_at=utcnow(),
        )
        with self._lock:
            remaining = [item for item in self._entries if item.id != entry.id]
            replaced = len(remaining) != len(self._entries)
            self._commit([entry] + remaining)
        logger.debug("Saved %s (%s)", entry.id, "replaced" if replaced else "new")
        return entry

    def delete(self, result_id: str) -> bool:
        with self._lock:
            remaining = [item for item in self._entries if item.id != result_id]
            if len(remaining) == len(self._entries):
                return False
            self._commit(remaining)
        return True

    def get_by_pack_and_project(self, pack_id: str, project_id: str) -> Optional[SavedTestResult]:
        key = history_key(pack_id, project_id)
        with self._lock:
            for item in self._entries:
                if item.id == key:
                    return item
        return None

    def list_all(self) -> List[SavedTestResult]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._commit([])

    def _commit(self, entries: List[SavedTestResult]) -> None:
        self._entries = entries


class JsonHistoryStore(InMemoryHistoryStore):
    """History kept in a single JSON document, rewritten atomically on change."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()
        super().__init__(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> List[SavedTestResult]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise HistoryError(f"Failed to read history file {self._path}: {exc}") from exc
        errors = sorted(_validator.iter_errors(raw), key=lambda e: list(e.path))
        if errors:
            messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
            raise HistoryError(f"History file {self._path} is invalid: {messages}")
        try:
            return [SavedTestResult.from_dict(item) for item in raw["results"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise HistoryError(f"History file {self._path} is invalid: {exc}") from exc

    def _commit(self, entries: List[SavedTestResult]) -> None:
        payload = {
            "version": HISTORY_FORMAT_VERSION,
            "results": [entry.to_dict() for entry in entries],
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".history-", suffix=".json", dir=self._path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise HistoryError(f"Failed to write history file {self._path}: {exc}") from exc
        super()._commit(entries)


_validator = Draft7Validator(HISTORY_SCHEMA)

"""Run a pack against a project and record the outcome."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from packrunner.backends.base import QueryBackend
from packrunner.core.models import Project, QuestionPack
from packrunner.core.results import SavedTestResult, TestRun
from packrunner.core.runner import RunCancelled, TestRunner
from packrunner.core.scoring import BID_HIGH, VerdictMapping
from packrunner.history.store import HistoryError, HistoryRepository
from packrunner.reporting.base import ReportManager, Reporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOutcome:
    """Completed run plus what happened when saving it.

    ``saved`` is ``None`` when no store was given or the save failed; in the
    latter case ``warnings`` explains why.
    """

    run: TestRun
    saved: Optional[SavedTestResult] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def run_session(
    pack: QuestionPack,
    project: Project,
    backend: QueryBackend,
    store: Optional[HistoryRepository] = None,
    *,
    mapping: VerdictMapping = BID_HIGH,
    reporters: Sequence[Reporter] = (),
    cancel_event: Optional[threading.Event] = None,
) -> SessionOutcome:
    """Execute ``pack`` for ``project`` and save the run to ``store``.

    Raises ``RunError`` when the run cannot start and ``RunCancelled`` when
    ``cancel_event`` is set before the run is saved. Failing to save is not
    an error: the run is returned with a warning.
    """

    manager = ReportManager(reporters)
    runner = TestRunner(backend, mapping=mapping, cancel_event=cancel_event)
    logger.info("Running pack %s (%d questions) for %s", pack.id, len(pack.questions), project.label())
    run = runner.execute(
        pack,
        project.id,
        on_start=lambda: manager.on_start(pack, project),
        on_result=manager.on_result,
    )
    if cancel_event is not None and cancel_event.is_set():
        raise RunCancelled("Run cancelled before its results were saved")
    saved: Optional[SavedTestResult] = None
    warnings: list[str] = []
    if store is not None:
        try:
            saved = store.save(run, pack, project.name)
        except HistoryError as exc:
            logger.warning("Could not save run %s: %s", run.id, exc)
            warnings.append(f"Run was not saved to history: {exc}")
    manager.on_complete(run)
    return SessionOutcome(run=run, saved=saved, warnings=tuple(warnings))

"""Hooks through which a pack run reports its progress."""
from __future__ import annotations

from typing import Iterable, List

from packrunner.core.models import Project, QuestionPack
from packrunner.core.results import TestResult, TestRun


class Reporter:
    """Receives the progress of one pack run.

    Every hook does nothing by default, so a reporter only overrides the
    events it renders.
    """

    def on_start(self, pack: QuestionPack, project: Project) -> None:
        """Called once, after the run is known to be startable."""

    def on_result(self, result: TestResult, index: int, total: int) -> None:
        """Called after each question; ``index`` is 1-based."""

    def on_complete(self, run: TestRun) -> None:
        """Called with the scored run once history has been written."""


class ReportManager(Reporter):
    """Reporter that forwards every event to its reporters in order."""

    def __init__(self, reporters: Iterable[Reporter] = ()) -> None:
        self._reporters: List[Reporter] = []
        for reporter in reporters:
            self.add(reporter)

    def add(self, reporter: Reporter) -> None:
        if reporter is self:
            raise ValueError("A report manager cannot forward to itself")
        self._reporters.append(reporter)

    def on_start(self, pack: QuestionPack, project: Project) -> None:
        for reporter in self._reporters:
            reporter.on_start(pack, project)

    def on_result(self, result: TestResult, index: int, total: int) -> None:
        for reporter in self._reporters:
            reporter.on_result(result, index, total)

    def on_complete(self, run: TestRun) -> None:
        for reporter in self._reporters:
            reporter.on_complete(run)

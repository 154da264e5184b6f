"""Terminal reporter rendering progress and the final verdict."""
from __future__ import annotations

import time

import click

from packrunner.core.models import Project, QuestionPack
from packrunner.core.results import TestResult, TestRun
from packrunner.core.scoring import BID_HIGH, VERDICT_CRITICAL_FAIL, VerdictMapping

from .base import Reporter

STATUS_COLORS = {
    "pass": "green",
    "fail": "red",
    "error": "yellow",
}

ANSWER_PREVIEW = 80


def result_status(result: TestResult) -> str:
    if result.errored:
        return "error"
    return "pass" if result.passed else "fail"


class TerminalReporter(Reporter):
    """Human-readable reporter that streams to stdout."""

    def __init__(self, *, use_color: bool = True, mapping: VerdictMapping = BID_HIGH) -> None:
        self._use_color = use_color
        self._mapping = mapping
        self._start_time = 0.0
        self._failures: list[tuple[int, TestResult]] = []

    def on_start(self, pack: QuestionPack, project: Project) -> None:
        self._start_time = time.perf_counter()
        self._failures.clear()
        click.echo(
            self._styled(
                f"Running pack '{pack.name}' ({len(pack.questions)} question(s)) on {project.label()}",
                force_color="cyan",
            )
        )

    def on_result(self, result: TestResult, index: int, total: int) -> None:
        status = result_status(result)
        click.echo(f"[{index}/{total}] {result.question_id} -> {self._styled(status.upper())} {_preview(result.answer)}")
        for source in result.sources:
            location = source.location()
            click.echo(f"    source: {source.human_readable}" + (f" ({location})" if location else ""))
        if not result.passed:
            self._failures.append((index, result))

    def on_complete(self, run: TestRun) -> None:
        duration = time.perf_counter() - self._start_time
        total = len(run.results)
        errors = run.error_count
        failed = total - run.passed_count - errors
        click.echo(
            self._styled(
                f"Summary: total={total} passed={run.passed_count} failed={failed} errors={errors} "
                f"duration={duration:.2f}s",
                force_color="cyan",
            )
        )
        if self._failures:
            click.echo(self._styled("Failed questions:", force_color="red"))
            for index, result in self._failures:
                marker = " [critical]" if result.critical else ""
                click.echo(f"  [{index}] {result.question_id}{marker}: {result.question}")
                click.echo(f"    answer: {_preview(result.raw_response if result.errored else result.answer)}")
        click.echo(
            f"Score: base={run.base_score} final={run.final_score} "
            f"verdict={self._styled(run.verdict, force_color=self._verdict_color(run.verdict))}"
        )

    def _verdict_color(self, verdict: str) -> str:
        if self._mapping.is_success(verdict):
            return "green"
        if verdict == VERDICT_CRITICAL_FAIL:
            return "red"
        return "yellow"

    def _styled(self, text: str, *, force_color: str | None = None) -> str:
        if not self._use_color:
            return text
        color = force_color or STATUS_COLORS.get(text.lower(), None)
        if color:
            return click.style(text, fg=color)
        return text


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) > ANSWER_PREVIEW:
        return flat[: ANSWER_PREVIEW - 3] + "..."
    return flat

"""Test runner asking a pack's questions one at a time."""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from packrunner.backends.base import QueryBackend

from .evaluator import evaluate_answer
from .extractor import extract_answer
from .models import Question, QuestionPack
from .parser import parse_sources
from .prompt import build_prompt
from .results import TestResult, TestRun, new_run_id, utcnow
from .scoring import BID_HIGH, VerdictMapping, calculate_score

logger = logging.getLogger(__name__)

StartCallback = Callable[[], None]
ResultCallback = Callable[[TestResult, int, int], None]


class RunError(RuntimeError):
    """Raised when a run cannot start; no question has been attempted."""


class RunCancelled(RuntimeError):
    """Raised when the caller cancels a run; partial results are discarded."""


class TestRunner:
    """Executes a pack's questions sequentially against a QA backend."""

    __test__ = False

    def __init__(
        self,
        backend: QueryBackend,
        *,
        mapping: VerdictMapping = BID_HIGH,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._backend = backend
        self._mapping = mapping
        self._cancel_event = cancel_event

    def run(
        self,
        pack: QuestionPack,
        project_id: str,
        *,
        on_start: Optional[StartCallback] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> List[TestResult]:
        """Return one result per question, in pack order.

        A failing question becomes an error result and the loop moves on.
        """

        self._check_startable(project_id)
        if on_start:
            on_start()
        results: List[TestResult] = []
        total = len(pack.questions)
        for index, question in enumerate(pack.questions, start=1):
            self._raise_if_cancelled(index, total)
            result = self._execute_question(question, project_id, index)
            results.append(result)
            if on_result:
                on_result(result, index, total)
        return results

    def execute(
        self,
        pack: QuestionPack,
        project_id: str,
        *,
        on_start: Optional[StartCallback] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> TestRun:
        results = self.run(pack, project_id, on_start=on_start, on_result=on_result)
        summary = calculate_score(results, self._mapping)
        return TestRun(
            id=new_run_id(),
            pack_id=pack.id,
            project_id=project_id,
            results=tuple(results),
            base_score=summary.base_score,
            final_score=summary.final_score,
            has_critical_fail=summary.has_critical_fail,
            verdict=summary.verdict,
            completed_at=utcnow(),
        )

    def _check_startable(self, project_id: str) -> None:
        if not project_id or not project_id.strip():
            raise RunError("A project id is required to run a pack")
        try:
            self._backend.preflight()
        except Exception as exc:
            raise RunError(f"QA backend '{self._backend.name}' is not usable: {exc}") from exc

    def _raise_if_cancelled(self, index: int, total: int) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            logger.info("Run cancelled before question %s/%s", index, total)
            raise RunCancelled(f"Run cancelled before question {index} of {total}")

    def _execute_question(self, question: Question, project_id: str, index: int) -> TestResult:
        try:
            prompt = build_prompt(question)
            raw_response = self._backend.query(project_id, prompt)
            parsed = parse_sources(raw_response)
            answer = extract_answer(parsed.clean_response, question.type)
            passed = evaluate_answer(question, answer)
            logger.debug("Question %s (%s) answered %r passed=%s", index, question.id, answer, passed)
            return TestResult(
                question_id=question.id,
                question=question.text,
                answer=answer,
                raw_response=parsed.clean_response,
                passed=passed,
                sources=parsed.sources,
                critical=question.critical,
                weight=question.weight,
            )
        except Exception as exc:
            logger.error("Error processing question %s (%s): %s", index, question.id, exc)
            return TestResult.for_error(question, exc)

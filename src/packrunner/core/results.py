"""Result data structures produced by a pack run."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Tuple

from .models import Question, Source

ERROR_ANSWER = "Error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_run_id() -> str:
    return f"run-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def history_key(pack_id: str, project_id: str) -> str:
    """Composite key allowing at most one saved result per pack/project pair."""

    return f"{pack_id}-{project_id}"


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class TestResult:
    """Outcome of asking a single question.

    ``critical`` and ``weight`` are copied from the question so a stored run
    can be scored again without the pack it came from.
    """

    __test__ = False  # not a pytest test class

    question_id: str
    question: str
    answer: str
    raw_response: str
    passed: bool
    sources: Tuple[Source, ...] = tuple()
    critical: bool = False
    weight: float = 1

    @property
    def errored(self) -> bool:
        return self.answer == ERROR_ANSWER and not self.passed and not self.sources

    @classmethod
    def for_error(cls, question: Question, exc: BaseException) -> "TestResult":
        message = str(exc) or type(exc).__name__
        return cls(
            question_id=question.id,
            question=question.text,
            answer=ERROR_ANSWER,
            raw_response=f"Error: {message}",
            passed=False,
            sources=tuple(),
            critical=question.critical,
            weight=question.weight,
        )

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "question": self.question,
            "answer": self.answer,
            "rawResponse": self.raw_response,
            "passed": self.passed,
            "sources": [source.to_dict() for source in self.sources],
            "critical": self.critical,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestResult":
        return cls(
            question_id=str(data["questionId"]),
            question=str(data["question"]),
            answer=str(data["answer"]),
            raw_response=str(data["rawResponse"]),
            passed=bool(data["passed"]),
            sources=tuple(Source.from_dict(item) for item in data.get("sources", [])),
            critical=bool(data.get("critical", False)),
            weight=data.get("weight", 1),
        )


@dataclass(frozen=True)
class TestRun:
    """A completed pack run; built once at the end of the run."""

    __test__ = False

    id: str
    pack_id: str
    project_id: str
    results: Tuple[TestResult, ...]
    base_score: int
    final_score: int
    has_critical_fail: bool
    verdict: str
    completed_at: datetime = field(default_factory=utcnow)

    @property
    def passed_count(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @property
    def error_count(self) -> int:
        return sum(1 for result in self.results if result.errored)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "packId": self.pack_id,
            "projectId": self.project_id,
            "results": [result.to_dict() for result in self.results],
            "baseScore": self.base_score,
            "finalScore": self.final_score,
            "hasCriticalFail": self.has_critical_fail,
            "verdict": self.verdict,
            "completedAt": format_timestamp(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestRun":
        return cls(
            id=str(data["id"]),
            pack_id=str(data["packId"]),
            project_id=str(data["projectId"]),
            results=tuple(TestResult.from_dict(item) for item in data.get("results", [])),
            base_score=int(data["baseScore"]),
            final_score=int(data["finalScore"]),
            has_critical_fail=bool(data["hasCriticalFail"]),
            verdict=str(data["verdict"]),
            completed_at=parse_timestamp(str(data["completedAt"])),
        )


@dataclass(frozen=True)
class SavedTestResult:
    """A TestRun stored in history with display names for its pack and project."""

    id: str
    pack_id: str
    pack_name: str
    project_id: str
    project_name: str
    test_run: TestRun
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "packId": self.pack_id,
            "packName": self.pack_name,
            "projectId": self.project_id,
            "projectName": self.project_name,
            "testRun": self.test_run.to_dict(),
            "createdAt": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SavedTestResult":
        return cls(
            id=str(data["id"]),
            pack_id=str(data["packId"]),
            pack_name=str(data["packName"]),
            project_id=str(data["projectId"]),
            project_name=str(data["projectName"]),
            test_run=TestRun.from_dict(data["testRun"]),
            created_at=parse_timestamp(str(data["createdAt"])),
        )

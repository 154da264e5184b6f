from __future__ import annotations

from typing import Callable

import pytest

from packrunner import bootstrap
from packrunner.core.models import Project, Question, QuestionPack


@pytest.fixture(scope="session", autouse=True)
def setup_packrunner_backends() -> None:
    """Register built-in backends once for the entire test session."""

    bootstrap()


@pytest.fixture
def make_pack() -> Callable[..., QuestionPack]:
    def factory(*questions: Question, pack_id: str = "site-readiness", name: str = "Site Readiness") -> QuestionPack:
        return QuestionPack(id=pack_id, name=name, questions=tuple(questions))

    return factory


@pytest.fixture
def project() -> Project:
    return Project(id="ITB-42", name="Riverside Tower")


@pytest.fixture
def three_question_pack(make_pack) -> QuestionPack:
    return make_pack(
        Question(id="q1", text="How many parking spaces are required?", type="number", threshold=10, comparator=">="),
        Question(id="q2", text="Is a fire sprinkler system required?", type="boolean", expected_boolean=True),
        Question(id="q3", text="What is the roofing material?", type="enum", expected_enum="TPO"),
    )

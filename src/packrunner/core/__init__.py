"""Core data structures and scoring helpers."""
from .models import PackFilters, Project, Question, QuestionPack, Source
from .results import SavedTestResult, TestResult, TestRun, history_key
from .scoring import (
    BID_HIGH,
    PASS_HIGH,
    ScoreSummary,
    VerdictMapping,
    calculate_score,
    get_verdict_mapping,
)

__all__ = [
    "BID_HIGH",
    "PASS_HIGH",
    "PackFilters",
    "Project",
    "Question",
    "QuestionPack",
    "SavedTestResult",
    "ScoreSummary",
    "Source",
    "TestResult",
    "TestRun",
    "VerdictMapping",
    "calculate_score",
    "get_verdict_mapping",
    "history_key",
]

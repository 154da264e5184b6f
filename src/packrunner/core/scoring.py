"""Weighted scoring and verdict derivation for a set of test results."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Sequence

from .results import TestResult

VERDICT_CRITICAL_FAIL = "Fail (critical)"
VERDICT_BID = "Bid"
VERDICT_PASS = "Pass"
VERDICT_EMPTY = "No questions"

DEFAULT_THRESHOLD = 70


@dataclass(frozen=True)
class VerdictMapping:
    """Maps a non-critical base score onto a verdict label.

    Scores at or above ``threshold`` get ``high``; the rest get ``low``.
    ``success`` names the verdict treated as a successful run.
    """

    name: str
    high: str
    low: str
    success: str
    threshold: int = DEFAULT_THRESHOLD

    def verdict_for(self, base_score: int) -> str:
        return self.high if base_score >= self.threshold else self.low

    def is_success(self, verdict: str) -> bool:
        return verdict == self.success


BID_HIGH = VerdictMapping(name="bid-high", high=VERDICT_BID, low=VERDICT_PASS, success=VERDICT_BID)
PASS_HIGH = VerdictMapping(name="pass-high", high=VERDICT_PASS, low=VERDICT_BID, success=VERDICT_PASS)

VERDICT_MAPPINGS: Dict[str, VerdictMapping] = {
    BID_HIGH.name: BID_HIGH,
    PASS_HIGH.name: PASS_HIGH,
}
DEFAULT_VERDICT_MAPPING = BID_HIGH.name


def get_verdict_mapping(name: str) -> VerdictMapping:
    try:
        return VERDICT_MAPPINGS[name]
    except KeyError as exc:
        supported = ", ".join(sorted(VERDICT_MAPPINGS))
        raise ValueError(f"Unknown verdict mapping '{name}'. Supported: {supported}") from exc


@dataclass(frozen=True)
class ScoreSummary:
    base_score: int
    final_score: int
    has_critical_fail: bool
    verdict: str


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_score(
    results: Sequence[TestResult],
    mapping: VerdictMapping = BID_HIGH,
) -> ScoreSummary:
    """Score ``results`` in one pass; never raises for empty or zero-weight input."""

    if not results:
        return ScoreSummary(base_score=0, final_score=0, has_critical_fail=False, verdict=VERDICT_EMPTY)
    has_critical_fail = any(result.critical and not result.passed for result in results)
    total = sum(result.weight for result in results)
    earned = sum(result.weight for result in results if result.passed)
    base_score = round_half_up(earned / total * 100) if total > 0 else 0
    final_score = 0 if has_critical_fail else base_score
    if has_critical_fail:
        verdict = VERDICT_CRITICAL_FAIL
    else:
        verdict = mapping.verdict_for(base_score)
    return ScoreSummary(
        base_score=base_score,
        final_score=final_score,
        has_critical_fail=has_critical_fail,
        verdict=verdict,
    )

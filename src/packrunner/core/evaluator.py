"""Judge an extracted answer against a question's pass/fail rule."""
from __future__ import annotations

import operator
import re
from typing import Callable, Dict, Optional

from .models import Question

COMPARATOR_FUNCS: Dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
}

_AFFIRMATIVE = ("yes", "true")
_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(text: str) -> Optional[float]:
    """Parse the longest numeric prefix of ``text``; ``None`` when there is none."""

    match = _LEADING_FLOAT.match(text)
    if not match:
        return None
    return float(match.group(1))


def is_affirmative(answer: str) -> bool:
    lowered = answer.lower()
    return any(token in lowered for token in _AFFIRMATIVE)


def evaluate_answer(question: Question, answer: str) -> bool:
    if question.type == "boolean":
        if question.expected_boolean is None:
            return False
        return is_affirmative(answer) == question.expected_boolean
    if question.type == "number":
        value = parse_number(answer)
        if value is None or question.threshold is None or not question.comparator:
            return False
        compare = COMPARATOR_FUNCS.get(question.comparator)
        if compare is None:
            return False
        return compare(value, question.threshold)
    if question.type == "enum":
        if not question.expected_enum:
            return False
        return question.expected_enum.lower() in answer.lower()
    if question.type == "lookup":
        # Citation presence is the signal for lookups; nothing to judge here.
        return True
    return False

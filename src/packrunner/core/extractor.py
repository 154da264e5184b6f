"""Pull the answer string out of a cleaned QA response."""
from __future__ import annotations

import re

MAX_ANSWER_LENGTH = 200

_FIRST_INTEGER = re.compile(r"\d+")
_SENTENCE_END = re.compile(r"[.!?]")


def extract_answer(clean_response: str, question_type: str) -> str:
    """Return the part of ``clean_response`` judged for ``question_type``.

    Number questions yield the first run of digits (``"0"`` when there is
    none), boolean questions the whole trimmed text, and every other type the
    first sentence capped at ``MAX_ANSWER_LENGTH`` characters.
    """

    if question_type == "number":
        match = _FIRST_INTEGER.search(clean_response)
        return match.group(0) if match else "0"
    if question_type == "boolean":
        return clean_response.strip()
    first_sentence = _SENTENCE_END.split(clean_response, maxsplit=1)[0].strip()
    if first_sentence:
        if len(first_sentence) > MAX_ANSWER_LENGTH:
            return first_sentence[:MAX_ANSWER_LENGTH] + "..."
        return first_sentence
    return clean_response[:MAX_ANSWER_LENGTH]

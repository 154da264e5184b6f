"""Prompt construction for the document QA service."""
from __future__ import annotations

from .models import Question

CITATION_TRAILER = """Please provide specific document references with page numbers and section numbers where applicable.

Please provide a clear, natural response fit for a chatbot widget to the question. Only provide explanation and sources for up to a maximum of 2 of the BEST, MOST RELEVANT sources. Do not say things like Introduction to Site Plans or provide multiple sections. One concise response. After your response, include source metadata in the following format for each source used:

```metadata
filename: [filename] human_readable: [human readable] page_num: [page num] sheet_number: [sheet_number] section: [section reference if applicable]
```

Ensure each source has at least filename and human_readable fields but try to provide as much source information as possible."""


def format_threshold(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_prompt(question: Question) -> str:
    """Return the request text for ``question`` including the citation trailer."""

    prompt = question.text
    if question.type == "number" and question.threshold is not None and question.comparator:
        prompt += (
            " (return only the number). "
            f"Does it meet {question.comparator} {format_threshold(question.threshold)}?"
        )
    if question.type == "boolean":
        prompt += ' Please answer in the format: "Yes/No - [reason]" where the reason explains why.'
    if question.type == "lookup":
        prompt += ' Please provide your answer followed by the reasoning: "[answer] - [reason why]"'
    return f"{prompt}\n\n{CITATION_TRAILER}"

"""Scripted backend used for dry runs and tests."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import yaml

from packrunner.core.models import Source
from packrunner.core.parser import format_metadata_block

from .base import QueryBackend, QueryError


@dataclass(frozen=True)
class StubResponse:
    """Canned answer for prompts containing ``match`` (every prompt when empty)."""

    text: str = ""
    match: str = ""
    error: Optional[str] = None
    sources: Tuple[Source, ...] = field(default_factory=tuple)

    def applies_to(self, prompt: str) -> bool:
        return not self.match or self.match.lower() in prompt.lower()

    def render(self) -> str:
        if self.error is not None:
            raise QueryError(self.error)
        if not self.sources:
            return self.text
        return f"{self.text}\n\n{format_metadata_block(self.sources)}"


class StubQueryBackend(QueryBackend):
    """Answers prompts from a script instead of a live QA service.

    Responses are tried in order; the first whose ``match`` occurs in the
    prompt is used. Without a match the ``default`` answer is returned.
    """

    name = "stub"

    def __init__(self, responses: Sequence[StubResponse] = (), *, default: Optional[str] = None) -> None:
        self._responses = tuple(responses)
        self._default = default
        self.calls: List[Tuple[str, str]] = []

    @classmethod
    def from_file(cls, path: str) -> "StubQueryBackend":
        raw = yaml.safe_load(Path(path).expanduser().read_text(encoding="utf-8")) or {}
        if not isinstance(raw, Mapping):
            raise ValueError("Stub response file must contain a mapping at the top level")
        entries = raw.get("responses") or []
        if not isinstance(entries, list):
            raise ValueError("responses must be a list")
        responses = [_parse_response(entry) for entry in entries]
        default = raw.get("default")
        return cls(responses, default=str(default) if default is not None else None)

    def query(self, project_id: str, prompt: str) -> str:
        self.calls.append((project_id, prompt))
        for response in self._responses:
            if response.applies_to(prompt):
                return response.render()
        if self._default is None:
            raise QueryError("no scripted response matches the prompt")
        return self._default


def _parse_response(entry: Any) -> StubResponse:
    if isinstance(entry, str):
        return StubResponse(text=entry)
    if not isinstance(entry, Mapping):
        raise ValueError("responses entries must be strings or mappings")
    sources = tuple(
        Source(
            filename=str(item["filename"]),
            human_readable=str(item.get("human_readable", item["filename"])),
            page_num=int(item.get("page_num", 0)),
            sheet_number=int(item.get("sheet_number", 0)),
            section=str(item.get("section", "")),
        )
        for item in entry.get("sources", []) or []
    )
    error = entry.get("error")
    return StubResponse(
        text=str(entry.get("text", "")),
        match=str(entry.get("match", "")),
        error=str(error) if error is not None else None,
        sources=sources,
    )

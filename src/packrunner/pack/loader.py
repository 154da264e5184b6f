"""YAML/JSON loaders for question packs and project lists."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import yaml
from jsonschema import Draft7Validator

from packrunner.core.models import (
    COMPARATORS,
    MAX_WEIGHT,
    PROJECT_SOURCES,
    QUESTION_TYPES,
    PackFilters,
    Project,
    Question,
    QuestionPack,
)
from packrunner.core.results import parse_timestamp
from packrunner.core.runner import RunError


def load_pack(path: str) -> QuestionPack:
    """Load and validate a question pack file."""
    raw = _read_document(path, "Pack")
    if not isinstance(raw, Mapping):
        raise ValueError("Pack file must contain a mapping at the top level")
    _raise_for_errors(_pack_validator, raw, "Pack")
    questions = tuple(Question.from_mapping(item) for item in raw["questions"])
    _validate_unique_ids(questions)
    filters_raw = raw.get("filters") or {}
    created_at = raw.get("created_at", raw.get("createdAt"))
    return QuestionPack(
        id=_require_str(raw, "id"),
        name=_require_str(raw, "name"),
        questions=questions,
        trades=tuple(str(trade) for trade in raw.get("trades", []) or []),
        filters=PackFilters(
            states=tuple(str(state) for state in filters_raw.get("states", []) or []),
            markets=tuple(str(market) for market in filters_raw.get("markets", []) or []),
        ),
        created_at=_parse_created_at(created_at),
    )


class ProjectCatalog:
    """Read-only lookup of the projects a pack can be run against."""

    def __init__(self, projects: Sequence[Project] = ()) -> None:
        self._projects: Dict[str, Project] = {}
        for project in projects:
            if project.id in self._projects:
                raise ValueError(f"Duplicate project id '{project.id}'")
            self._projects[project.id] = project

    def get(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def resolve(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise RunError(f"Unknown project '{project_id}'")
        return project

    def __iter__(self) -> Iterator[Project]:
        return iter(self._projects.values())

    def __len__(self) -> int:
        return len(self._projects)


def load_projects(path: str) -> ProjectCatalog:
    """Load a project list (a list, or a mapping with a ``projects`` list)."""
    raw = _read_document(path, "Projects")
    if isinstance(raw, Mapping):
        raw = raw.get("projects")
    if not isinstance(raw, list):
        raise ValueError("Projects file must contain a list of projects")
    _raise_for_errors(_projects_validator, raw, "Projects")
    projects: List[Project] = []
    for entry in raw:
        document_count = entry.get("document_count", entry.get("documentCount"))
        projects.append(
            Project(
                id=_require_str(entry, "id"),
                name=str(entry.get("name") or entry["id"]),
                source=str(entry.get("source", "manual")),
                document_count=int(document_count) if document_count is not None else None,
            )
        )
    return ProjectCatalog(projects)


def _read_document(path: str, label: str) -> Any:
    file_path = Path(path).expanduser().resolve()
    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text) or {}
    except (ValueError, yaml.YAMLError) as exc:
        raise ValueError(f"{label} file {file_path} could not be parsed: {exc}") from exc


def _raise_for_errors(validator: Draft7Validator, raw: Any, label: str) -> None:
    errors = sorted(validator.iter_errors(raw), key=lambda e: list(e.path))
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise ValueError(f"{label} schema validation failed: {messages}")


def _require_str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Missing required string field '{key}'")
    text = value.strip()
    if not text:
        raise ValueError(f"Field '{key}' cannot be empty")
    return text


def _parse_created_at(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return parse_timestamp(str(value))


def _validate_unique_ids(questions: Sequence[Question]) -> None:
    seen: set[str] = set()
    for question in questions:
        if question.id in seen:
            raise ValueError(f"Duplicate question id '{question.id}'")
        seen.add(question.id)


_STRING_LIST = {"type": "array", "items": {"type": "string"}}

PACK_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["id", "name", "questions"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "trades": _STRING_LIST,
        "filters": {
            "type": "object",
            "properties": {"states": _STRING_LIST, "markets": _STRING_LIST},
        },
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "text", "type"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "key": {"type": "string"},
                    "text": {"type": "string", "minLength": 1},
                    "type": {"enum": list(QUESTION_TYPES)},
                    "threshold": {"type": "number"},
                    "comparator": {"enum": list(COMPARATORS)},
                    "expected_boolean": {"type": "boolean"},
                    "expectedBoolean": {"type": "boolean"},
                    "expected_enum": {"type": "string"},
                    "expectedEnum": {"type": "string"},
                    "critical": {"type": "boolean"},
                    "weight": {"type": "number", "minimum": 0, "maximum": MAX_WEIGHT},
                },
            },
        },
    },
}

PROJECTS_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "name": {"type": "string"},
            "source": {"enum": list(PROJECT_SOURCES)},
            "document_count": {"type": "integer", "minimum": 0},
            "documentCount": {"type": "integer", "minimum": 0},
        },
    },
}

_pack_validator = Draft7Validator(PACK_SCHEMA)
_projects_validator = Draft7Validator(PROJECTS_SCHEMA)

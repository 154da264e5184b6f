"""Core dataclasses describing question packs and projects."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

QUESTION_TYPES = ("boolean", "number", "enum", "lookup")
COMPARATORS = (">=", "<=", ">", "<", "==")
PROJECT_SOURCES = ("manual", "api")

MAX_WEIGHT = 10


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Question:
    """One typed question with its pass/fail rule."""

    id: str
    text: str
    type: str
    key: str = "custom"
    threshold: Optional[float] = None
    comparator: Optional[str] = None
    expected_boolean: Optional[bool] = None
    expected_enum: Optional[str] = None
    critical: bool = False
    weight: float = 1

    def __post_init__(self) -> None:
        if self.type not in QUESTION_TYPES:
            raise ValueError(f"Question '{self.id}' has unsupported type '{self.type}'")
        if self.comparator is not None and self.comparator not in COMPARATORS:
            raise ValueError(f"Question '{self.id}' has unsupported comparator '{self.comparator}'")
        if not 0 <= self.weight <= MAX_WEIGHT:
            raise ValueError(f"Question '{self.id}' weight {self.weight} outside 0..{MAX_WEIGHT}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Question":
        threshold = _pick(data, "threshold")
        expected_boolean = _pick(data, "expected_boolean", "expectedBoolean")
        expected_enum = _pick(data, "expected_enum", "expectedEnum")
        return cls(
            id=str(data["id"]),
            key=str(data.get("key") or "custom"),
            text=str(data["text"]),
            type=str(data["type"]),
            threshold=float(threshold) if threshold is not None else None,
            comparator=_pick(data, "comparator"),
            expected_boolean=bool(expected_boolean) if expected_boolean is not None else None,
            expected_enum=str(expected_enum) if expected_enum is not None else None,
            critical=bool(data.get("critical", False)),
            weight=data.get("weight", 1),
        )

    def to_dict(self) -> dict:
        record: dict = {
            "id": self.id,
            "key": self.key,
            "text": self.text,
            "type": self.type,
            "critical": self.critical,
            "weight": self.weight,
        }
        if self.threshold is not None:
            record["threshold"] = self.threshold
        if self.comparator is not None:
            record["comparator"] = self.comparator
        if self.expected_boolean is not None:
            record["expectedBoolean"] = self.expected_boolean
        if self.expected_enum is not None:
            record["expectedEnum"] = self.expected_enum
        return record


@dataclass(frozen=True)
class PackFilters:
    states: Tuple[str, ...] = tuple()
    markets: Tuple[str, ...] = tuple()


@dataclass(frozen=True)
class QuestionPack:
    """Named, ordered collection of questions run as a single test."""

    id: str
    name: str
    questions: Tuple[Question, ...]
    trades: Tuple[str, ...] = tuple()
    filters: PackFilters = field(default_factory=PackFilters)
    created_at: Optional[datetime] = None

    def question(self, question_id: str) -> Question:
        for item in self.questions:
            if item.id == question_id:
                return item
        raise KeyError(f"Question '{question_id}' is not part of pack '{self.id}'")


@dataclass(frozen=True)
class Project:
    """Target project whose documents the QA service answers from."""

    id: str
    name: str
    source: str = "manual"
    document_count: Optional[int] = None

    def label(self) -> str:
        if self.name and self.name != self.id:
            return f"{self.name} ({self.id})"
        return self.id


@dataclass(frozen=True)
class Source:
    """One citation attached to an answer. Zero page/sheet numbers mean absent."""

    filename: str
    human_readable: str
    page_num: int = 0
    sheet_number: int = 0
    section: str = ""

    def location(self) -> str:
        parts = []
        if self.page_num:
            parts.append(f"p. {self.page_num}")
        if self.sheet_number:
            parts.append(f"sheet {self.sheet_number}")
        if self.section:
            parts.append(f"§ {self.section}")
        return ", ".join(parts)

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "humanReadable": self.human_readable,
            "pageNum": self.page_num,
            "sheetNumber": self.sheet_number,
            "section": self.section,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Source":
        return cls(
            filename=str(data["filename"]),
            human_readable=str(data.get("humanReadable", "")),
            page_num=int(data.get("pageNum", 0)),
            sheet_number=int(data.get("sheetNumber", 0)),
            section=str(data.get("section", "")),
        )

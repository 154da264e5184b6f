"""Split QA service output into a clean answer body and structured citations."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Pattern, Sequence, Tuple

from .models import Source

UNKNOWN_DOCUMENT = "Unknown Document"

PLACEHOLDER_FILENAMES = frozenset({"unknown document", "unknown", "n/a", "none", "null"})

ACRONYMS = frozenset({"MEP", "HVAC", "ADA", "RFI", "ITB", "CAD", "DWG", "PDF", "FP", "MEPF"})

_METADATA_BLOCK = re.compile(r"```metadata\s+(.*?)```", re.IGNORECASE | re.DOTALL)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_KEY_TOKEN = re.compile(
    r"(?<!\w)(filename|document_id|human_readable|page_number|page_num|sheet_number|section)\s*:",
    re.IGNORECASE,
)
_CANONICAL_KEYS = {
    "filename": "filename",
    "document_id": "filename",
    "human_readable": "human_readable",
    "page_num": "page_num",
    "page_number": "page_num",
    "sheet_number": "sheet_number",
    "section": "section",
}
_TEMPLATE_PLACEHOLDER = re.compile(r"^\[[^\]]*\]$")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_EXTENSION = re.compile(r"\.(pdf|dwg|docx?|xlsx?)$", re.IGNORECASE)


class ParsedResponse(NamedTuple):
    clean_response: str
    sources: Tuple[Source, ...]



@dataclass(frozen=True)
class HumanizeRule:
    """Regex rule rewriting part of a document name.

    ``count`` limits how many occurrences :meth:`apply` replaces; 0 means all.
    """

    pattern: Pattern[str]
    replacement: str
    count: int = 0

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None

    def apply(self, name: str) -> str:
        return self.pattern.sub(self.replacement, name, count=self.count)


def _rule(expression: str, replacement: str, count: int = 0, flags: int = re.IGNORECASE) -> HumanizeRule:
    return HumanizeRule(re.compile(expression, flags), replacement, count)


def _naming(expression: str, replacement: str) -> HumanizeRule:
    return _rule(expression, replacement, count=1)


_SEP = r"[_\s+&-]*"
_SPEC = r"Spec(?:s|ifications?)?"


def _division(number: str, trade: str) -> HumanizeRule:
    # CSI section numbers such as 033000 start with the division number.
    return _naming(
        rf"^.*?{_SPEC}.*?(?<!\d){number}.*?{trade}",
        f"Division {number} - {trade} Specifications",
    )


# Naming conventions, most specific first. Only the first matching rule is
# substituted; whatever it leaves around the match goes through cleanup.
NAMING_RULES: Tuple[HumanizeRule, ...] = (
    _naming(rf"Arch(?:itectural)?{_SEP}MEP{_SEP}Plans", "Architectural & MEP Plans"),
    _naming(rf"MEP{_SEP}Plans", "MEP Plans"),
    _naming(rf"Arch(?:itectural)?{_SEP}Plans", "Architectural Plans"),
    _naming(rf"Civil{_SEP}Plans", "Civil Plans"),
    _naming(rf"Structural{_SEP}Plans", "Structural Plans"),
    _division("03", "Concrete"),
    _division("04", "Masonry"),
    _division("22", "Plumbing"),
    _division("26", "Electrical"),
    _naming(rf"^.*?Plans{_SEP}Rev(?![A-Za-z])", "Project Plans"),
    _naming(r"^.*?Drawings", "Project Drawings"),
    _naming(rf"^.*?{_SPEC}", "Project Specifications"),
)

# Applied in order after the naming rules.
CLEANUP_RULES: Tuple[HumanizeRule, ...] = (
    _rule(r"[_\s]*Rev[._\s]*\d{4}[-_]\d{2}[-_]\d{2}", ""),
    _rule(r"[_\s]*\d{4}[-_]\d{2}[-_]\d{2}", ""),
    _rule(r"_+", " "),
    _rule(r"\s+", " "),
)


def humanize_filename(
    filename: str,
    naming_rules: Sequence[HumanizeRule] = NAMING_RULES,
    cleanup_rules: Sequence[HumanizeRule] = CLEANUP_RULES,
) -> str:
    """Derive a display name for a document from its file name."""

    if not filename or not filename.strip():
        return UNKNOWN_DOCUMENT
    name = _EXTENSION.sub("", filename.strip())
    for rule in naming_rules:
        if rule.matches(name):
            name = rule.apply(name)
            break
    for rule in cleanup_rules:
        name = rule.apply(name)
    name = _title_case(name.strip())
    return name or filename


def _title_case(text: str) -> str:
    words = []
    for word in text.split(" "):
        if word.upper() in ACRONYMS:
            words.append(word.upper())
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return " ".join(words)


def parse_sources(response: str) -> ParsedResponse:
    """Extract citations from every ``metadata`` block and strip the blocks."""

    sources: List[Source] = []
    for match in _METADATA_BLOCK.finditer(response):
        for record in _parse_block(match.group(1)):
            source = _build_source(record)
            if source is not None:
                sources.append(source)
    clean = _METADATA_BLOCK.sub("", response)
    clean = _EXCESS_NEWLINES.sub("\n\n", clean).strip()
    return ParsedResponse(clean_response=clean, sources=tuple(sources))


def format_metadata_block(sources: Sequence[Source]) -> str:
    """Render sources the way the prompt trailer asks the model to."""

    lines = []
    for source in sources:
        tokens = [f"filename: {source.filename}", f"human_readable: {source.human_readable}"]
        if source.page_num:
            tokens.append(f"page_num: {source.page_num}")
        if source.sheet_number:
            tokens.append(f"sheet_number: {source.sheet_number}")
        if source.section:
            tokens.append(f"section: {source.section}")
        lines.append(" ".join(tokens))
    body = "\n".join(lines)
    return f"```metadata\n{body}\n```"


def _parse_block(block: str) -> List[Dict[str, str]]:
    records: List[Dict[str, str]] = []
    current: Dict[str, str] = {}
    for line in block.splitlines():
        fields = _parse_line(line)
        if not fields:
            continue
        if "filename" in fields and "filename" in current:
            records.append(current)
            current = {}
        for key, value in fields.items():
            current.setdefault(key, value)
    if current:
        records.append(current)
    return records


def _parse_line(line: str) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    tokens = list(_KEY_TOKEN.finditer(line))
    for index, token in enumerate(tokens):
        end = tokens[index + 1].start() if index + 1 < len(tokens) else len(line)
        value = line[token.end() : end].strip()
        if not value or _TEMPLATE_PLACEHOLDER.match(value):
            continue
        fields.setdefault(_CANONICAL_KEYS[token.group(1).lower()], value)
    return fields


def _build_source(record: Dict[str, str]) -> Optional[Source]:
    filename = record.get("filename", "")
    if not filename or filename.lower() in PLACEHOLDER_FILENAMES:
        return None
    return Source(
        filename=filename,
        human_readable=record.get("human_readable") or humanize_filename(filename),
        page_num=_parse_int(record.get("page_num")),
        sheet_number=_parse_int(record.get("sheet_number")),
        section=record.get("section", ""),
    )


def _parse_int(value: Optional[str]) -> int:
    if not value:
        return 0
    match = _LEADING_INT.match(value)
    if not match:
        return 0
    number = int(match.group(1))
    return number if number > 0 else 0

from __future__ import annotations

import json
import textwrap
from datetime import datetime, timezone

import pytest

from packrunner.core.runner import RunError
from packrunner.pack import load_pack, load_projects


def _write(tmp_path, name: str, content: str):
    path = tmp_path / name
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def test_load_yaml_pack(tmp_path) -> None:
    path = _write(
        tmp_path,
        "pack.yaml",
        """
        id: site-readiness
        name: Site Readiness
        trades: [concrete, roofing]
        filters:
          states: [TX]
        createdAt: "2024-02-01T09:00:00Z"
        questions:
          - id: q1
            key: parking
            text: How many parking spaces are required?
            type: number
            threshold: 10
            comparator: ">="
            weight: 5
          - id: q2
            text: Is a fire sprinkler system required?
            type: boolean
            expectedBoolean: true
            critical: true
          - id: q3
            text: What is the roofing material?
            type: enum
            expected_enum: TPO
        """,
    )
    pack = load_pack(str(path))
    assert pack.id == "site-readiness"
    assert pack.trades == ("concrete", "roofing")
    assert pack.filters.states == ("TX",)
    assert pack.filters.markets == ()
    assert pack.created_at == datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc)
    q1, q2, q3 = pack.questions
    assert (q1.key, q1.threshold, q1.comparator, q1.weight) == ("parking", 10.0, ">=", 5)
    assert q2.expected_boolean is True and q2.critical is True and q2.weight == 1
    assert q3.expected_enum == "TPO"
    assert q3.key == "custom"
    assert pack.question("q2") is q2


def test_load_json_pack(tmp_path) -> None:
    path = tmp_path / "pack.json"
    path.write_text(
        json.dumps(
            {
                "id": "p",
                "name": "Pack",
                "questions": [{"id": "q1", "text": "Architect?", "type": "lookup"}],
            }
        ),
        encoding="utf-8",
    )
    pack = load_pack(str(path))
    assert [question.type for question in pack.questions] == ["lookup"]
    assert pack.created_at is None


@pytest.mark.parametrize(
    "question, message",
    [
        ('{id: q1, text: "Size?", type: scale}', "questions/0/type"),
        ('{id: q1, text: "Size?", type: number, comparator: "!="}', "questions/0/comparator"),
        ('{id: q1, text: "Size?", type: number, weight: 11}', "questions/0/weight"),
        ("{id: q1, type: number}", "'text' is a required property"),
    ],
)
def test_invalid_question_rejected(tmp_path, question: str, message: str) -> None:
    path = _write(tmp_path, "pack.yaml", f"id: p\nname: Pack\nquestions:\n  - {question}\n")
    with pytest.raises(ValueError, match="Pack schema validation failed") as excinfo:
        load_pack(str(path))
    assert message in str(excinfo.value)


def test_duplicate_question_ids_rejected(tmp_path) -> None:
    path = _write(
        tmp_path,
        "pack.yaml",
        """
        id: p
        name: Pack
        questions:
          - {id: q1, text: "One?", type: lookup}
          - {id: q1, text: "Two?", type: lookup}
        """,
    )
    with pytest.raises(ValueError, match="Duplicate question id 'q1'"):
        load_pack(str(path))


def test_top_level_must_be_mapping(tmp_path) -> None:
    path = _write(tmp_path, "pack.yaml", "- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping at the top level"):
        load_pack(str(path))


def test_unparseable_pack_file(tmp_path) -> None:
    path = _write(tmp_path, "pack.json", "{oops")
    with pytest.raises(ValueError, match="could not be parsed"):
        load_pack(str(path))


def test_load_projects_and_resolve(tmp_path) -> None:
    path = _write(
        tmp_path,
        "projects.yaml",
        """
        projects:
          - id: ITB-42
            name: Riverside Tower
            source: api
            documentCount: 14
          - id: ITB-7
        """,
    )
    catalog = load_projects(str(path))
    assert len(catalog) == 2
    tower = catalog.resolve("ITB-42")
    assert (tower.name, tower.source, tower.document_count) == ("Riverside Tower", "api", 14)
    assert tower.label() == "Riverside Tower (ITB-42)"
    assert catalog.resolve("ITB-7").label() == "ITB-7"
    assert catalog.get("nope") is None
    with pytest.raises(RunError, match="Unknown project 'nope'"):
        catalog.resolve("nope")


def test_projects_file_may_be_a_list(tmp_path) -> None:
    path = _write(tmp_path, "projects.yaml", "- {id: A, name: Alpha}\n- {id: B, name: Beta}\n")
    assert [project.id for project in load_projects(str(path))] == ["A", "B"]


def test_projects_reject_bad_source(tmp_path) -> None:
    path = _write(tmp_path, "projects.yaml", "- {id: A, source: spreadsheet}\n")
    with pytest.raises(ValueError, match="0/source"):
        load_projects(str(path))

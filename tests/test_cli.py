from __future__ import annotations

import json
import textwrap

import pytest
from click.testing import CliRunner

from packrunner import __version__
from packrunner.cli.main import cli

PACK = """
id: site-readiness
name: Site Readiness
questions:
  - id: q1
    text: How many parking spaces are required?
    type: number
    threshold: 10
    comparator: ">="
  - id: q2
    text: Is a fire sprinkler system required?
    type: boolean
    expectedBoolean: true
    critical: true
"""

PASSING = """
responses:
  - match: parking
    text: There are 12 required spaces.
    sources:
      - filename: Civil_Plans.pdf
        human_readable: Civil Plans
        page_num: 3
  - match: sprinkler
    text: Yes - an NFPA 13 system is required.
"""

FAILING = """
responses:
  - match: parking
    text: There are 4 required spaces.
  - match: sprinkler
    error: connection reset
"""


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "pack.yaml").write_text(textwrap.dedent(PACK), encoding="utf-8")
    (tmp_path / "passing.yaml").write_text(textwrap.dedent(PASSING), encoding="utf-8")
    (tmp_path / "failing.yaml").write_text(textwrap.dedent(FAILING), encoding="utf-8")
    (tmp_path / "projects.yaml").write_text("- {id: ITB-42, name: Riverside Tower}\n", encoding="utf-8")
    return tmp_path


def _invoke(workspace, *args: str):
    runner = CliRunner()
    env = {"PACKRUNNER_HISTORY_PATH": str(workspace / "history.json"), "PACKRUNNER_VERDICT_MAPPING": "bid-high"}
    return runner.invoke(cli, list(args), env=env)


def _run_args(workspace, responses: str, *extra: str):
    return (
        "run",
        "--pack",
        str(workspace / "pack.yaml"),
        "--project",
        "ITB-42",
        "--backend",
        "stub",
        "--responses",
        str(workspace / responses),
        "--no-color",
    ) + extra


def test_cli_help_short_flag() -> None:
    result = CliRunner().invoke(cli, ["-h"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "run" in result.output
    assert "history" in result.output


def test_cli_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == f"packrunner {__version__}"


def test_cli_run_bid(workspace) -> None:
    result = _invoke(workspace, *_run_args(workspace, "passing.yaml", "--projects", str(workspace / "projects.yaml")))
    assert result.exit_code == 0, result.output
    assert "on Riverside Tower (ITB-42)" in result.output
    assert "[1/2] q1 -> PASS 12" in result.output
    assert "verdict=Bid" in result.output
    saved = json.loads((workspace / "history.json").read_text(encoding="utf-8"))["results"]
    assert [entry["id"] for entry in saved] == ["site-readiness-ITB-42"]
    assert saved[0]["projectName"] == "Riverside Tower"


def test_cli_run_critical_failure_exits_nonzero(workspace) -> None:
    result = _invoke(workspace, *_run_args(workspace, "failing.yaml"))
    assert result.exit_code == 1, result.output
    assert "[2/2] q2 -> ERROR" in result.output
    assert "verdict=Fail (critical)" in result.output


def test_cli_run_no_save(workspace) -> None:
    result = _invoke(workspace, *_run_args(workspace, "passing.yaml", "--no-save"))
    assert result.exit_code == 0, result.output
    assert not (workspace / "history.json").exists()


def test_cli_run_json_report(workspace) -> None:
    report = workspace / "out" / "report.json"
    result = _invoke(
        workspace,
        *_run_args(workspace, "passing.yaml", "--report", "json", "--report-path", str(report)),
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(report.read_text(encoding="utf-8"))
    assert payload["summary"]["final_score"] == 100
    assert payload["summary"]["verdict"] == "Bid"
    assert payload["summary"]["verdict_mapping"] == "bid-high"


def test_cli_json_report_requires_path(workspace) -> None:
    result = _invoke(workspace, *_run_args(workspace, "passing.yaml", "--report", "json"))
    assert result.exit_code == 2
    assert "--report-path" in result.output


def test_cli_pass_high_mapping(workspace) -> None:
    result = _invoke(workspace, *_run_args(workspace, "passing.yaml", "--verdict-mapping", "pass-high"))
    assert result.exit_code == 0, result.output
    assert "verdict=Pass" in result.output


def test_cli_unknown_project(workspace) -> None:
    result = _invoke(
        workspace,
        "run",
        "--pack",
        str(workspace / "pack.yaml"),
        "--project",
        "ITB-99",
        "--projects",
        str(workspace / "projects.yaml"),
        "--backend",
        "stub",
    )
    assert result.exit_code == 1
    assert "Unknown project 'ITB-99'" in result.output


def test_cli_unusable_endpoint(workspace) -> None:
    result = _invoke(
        workspace,
        "run",
        "--pack",
        str(workspace / "pack.yaml"),
        "--project",
        "ITB-42",
        "--endpoint",
        "ftp://qa.example.com/query",
    )
    assert result.exit_code == 1
    assert "not usable" in result.output
    assert not (workspace / "history.json").exists()


def test_cli_corrupt_history_is_a_warning(workspace) -> None:
    (workspace / "history.json").write_text("{broken", encoding="utf-8")
    result = _invoke(workspace, *_run_args(workspace, "passing.yaml"))
    assert result.exit_code == 0, result.output
    assert "history disabled" in result.output


def test_cli_history_commands(workspace) -> None:
    assert _invoke(workspace, *_run_args(workspace, "passing.yaml")).exit_code == 0

    listed = _invoke(workspace, "history", "list")
    assert listed.exit_code == 0, listed.output
    assert "site-readiness-ITB-42  Bid (final=100, base=100)  Site Readiness / ITB-42" in listed.output

    filtered = _invoke(workspace, "history", "list", "--pack", "other-pack")
    assert "No saved results." in filtered.output

    by_project = _invoke(workspace, "history", "list", "--project", "ITB-42")
    assert "site-readiness-ITB-42" in by_project.output
    assert "No saved results." in _invoke(workspace, "history", "list", "--project", "ITB-7").output

    both = _invoke(workspace, "history", "list", "--pack", "site-readiness", "--project", "ITB-42")
    assert "site-readiness-ITB-42" in both.output
    assert "No saved results." in _invoke(workspace, "history", "list", "--pack", "other-pack", "--project", "ITB-42").output

    shown = _invoke(workspace, "history", "show", "site-readiness", "ITB-42")
    assert shown.exit_code == 0, shown.output
    assert "verdict: Bid (final=100, base=100, critical fail=no)" in shown.output
    assert "Civil Plans (p. 3)" in shown.output

    as_json = _invoke(workspace, "history", "show", "site-readiness", "ITB-42", "--json")
    assert json.loads(as_json.output)["testRun"]["verdict"] == "Bid"

    missing = _invoke(workspace, "history", "show", "site-readiness", "ITB-7")
    assert missing.exit_code == 1
    assert "No saved result" in missing.output

    deleted = _invoke(workspace, "history", "delete", "site-readiness-ITB-42")
    assert deleted.exit_code == 0
    assert "Deleted site-readiness-ITB-42" in deleted.output
    assert _invoke(workspace, "history", "delete", "site-readiness-ITB-42").exit_code == 1


def test_cli_history_clear(workspace) -> None:
    assert _invoke(workspace, *_run_args(workspace, "passing.yaml")).exit_code == 0
    result = _invoke(workspace, "history", "clear", "--yes")
    assert result.exit_code == 0, result.output
    assert "History cleared." in result.output
    assert _invoke(workspace, "history", "list").output.strip() == "No saved results."

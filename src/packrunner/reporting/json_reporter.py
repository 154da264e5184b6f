"""JSON reporter emitting the completed run."""
from __future__ import annotations

import json
import pathlib
import time
from typing import Any, Dict

import click
from jsonschema import validate

from packrunner.core.models import Project, QuestionPack
from packrunner.core.results import TestRun, format_timestamp, utcnow
from packrunner.core.scoring import BID_HIGH, VerdictMapping

from .base import Reporter
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION


class JsonReporter(Reporter):
    """Writes the run to a JSON file validated against the schema."""

    def __init__(self, path: str, *, mapping: VerdictMapping = BID_HIGH) -> None:
        self._path = pathlib.Path(path)
        self._mapping = mapping
        self._pack: QuestionPack | None = None
        self._project: Project | None = None
        self._start_time = 0.0

    def on_start(self, pack: QuestionPack, project: Project) -> None:
        self._pack = pack
        self._project = project
        self._start_time = time.perf_counter()

    def on_complete(self, run: TestRun) -> None:
        if self._pack is None or self._project is None:
            return
        payload = {
            "schema_version": SCHEMA_VERSION,
            "generated_at": format_timestamp(utcnow().replace(microsecond=0)),
            "pack": {"id": self._pack.id, "name": self._pack.name},
            "project": {"id": self._project.id, "name": self._project.name},
            "summary": _build_summary(run, self._mapping, time.perf_counter() - self._start_time),
            "run": run.to_dict(),
        }
        validate(instance=payload, schema=JSON_SCHEMA_V1)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}")


def _build_summary(run: TestRun, mapping: VerdictMapping, duration: float) -> Dict[str, Any]:
    total = len(run.results)
    errors = run.error_count
    return {
        "total": total,
        "passed": run.passed_count,
        "failed": total - run.passed_count - errors,
        "errors": errors,
        "base_score": run.base_score,
        "final_score": run.final_score,
        "has_critical_fail": run.has_critical_fail,
        "verdict": run.verdict,
        "verdict_mapping": mapping.name,
        "duration_s": duration,
    }

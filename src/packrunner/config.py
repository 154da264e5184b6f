"""Runtime configuration read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from packrunner.core.scoring import DEFAULT_VERDICT_MAPPING

DEFAULT_ENDPOINT = "http://localhost:8000/query"
DEFAULT_HISTORY_PATH = Path("~/.packrunner/history.json")


@dataclass(frozen=True)
class RunnerConfig:
    endpoint: str = DEFAULT_ENDPOINT
    method: str = "basic"
    timeout: float = 60.0
    retries: int = 0
    history_path: Path = DEFAULT_HISTORY_PATH
    verdict_mapping: str = DEFAULT_VERDICT_MAPPING
    log_level: str = "WARNING"
    responses_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "RunnerConfig":
        responses = os.getenv("PACKRUNNER_STUB_RESPONSES")
        return cls(
            endpoint=os.getenv("PACKRUNNER_QA_ENDPOINT", DEFAULT_ENDPOINT),
            method=os.getenv("PACKRUNNER_QA_METHOD", "basic"),
            timeout=_float_env("PACKRUNNER_TIMEOUT", 60.0),
            retries=int(_float_env("PACKRUNNER_RETRIES", 0)),
            history_path=Path(os.getenv("PACKRUNNER_HISTORY_PATH", str(DEFAULT_HISTORY_PATH))),
            verdict_mapping=os.getenv("PACKRUNNER_VERDICT_MAPPING", DEFAULT_VERDICT_MAPPING),
            log_level=os.getenv("PACKRUNNER_LOG_LEVEL", "WARNING").upper(),
            responses_path=Path(responses) if responses else None,
        )

    def with_overrides(self, **overrides: Any) -> "RunnerConfig":
        """Return a copy with every non-``None`` override applied."""

        values = {key: value for key, value in overrides.items() if value is not None}
        if "history_path" in values:
            values["history_path"] = Path(values["history_path"])
        if "responses_path" in values:
            values["responses_path"] = Path(values["responses_path"])
        return replace(self, **values)

    @property
    def resolved_history_path(self) -> Path:
        return self.history_path.expanduser()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be numeric, got {raw!r}") from exc

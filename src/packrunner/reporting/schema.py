"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "packrunner report",
    "type": "object",
    "required": ["schema_version", "generated_at", "pack", "project", "summary", "run"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "pack": {
            "type": "object",
            "required": ["id", "name"],
            "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
        },
        "project": {
            "type": "object",
            "required": ["id", "name"],
            "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
        },
        "summary": {
            "type": "object",
            "required": [
                "total",
                "passed",
                "failed",
                "errors",
                "base_score",
                "final_score",
                "has_critical_fail",
                "verdict",
                "verdict_mapping",
                "duration_s",
            ],
            "properties": {
                "total": {"type": "integer"},
                "passed": {"type": "integer"},
                "failed": {"type": "integer"},
                "errors": {"type": "integer"},
                "base_score": {"type": "integer", "minimum": 0, "maximum": 100},
                "final_score": {"type": "integer", "minimum": 0, "maximum": 100},
                "has_critical_fail": {"type": "boolean"},
                "verdict": {"type": "string"},
                "verdict_mapping": {"type": "string"},
                "duration_s": {"type": "number"},
            },
        },
        "run": {
            "type": "object",
            "required": ["id", "packId", "projectId", "results", "completedAt"],
            "properties": {
                "results": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["questionId", "answer", "passed", "sources"],
                        "properties": {
                            "questionId": {"type": "string"},
                            "answer": {"type": "string"},
                            "passed": {"type": "boolean"},
                            "sources": {"type": "array"},
                        },
                    },
                },
            },
        },
    },
}

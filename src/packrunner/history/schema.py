"""JSON schema for the history file."""
from __future__ import annotations

HISTORY_FORMAT_VERSION = 1

_SOURCE = {
    "type": "object",
    "required": ["filename", "humanReadable"],
    "properties": {
        "filename": {"type": "string"},
        "humanReadable": {"type": "string"},
        "pageNum": {"type": "integer", "minimum": 0},
        "sheetNumber": {"type": "integer", "minimum": 0},
        "section": {"type": "string"},
    },
}

_RESULT = {
    "type": "object",
    "required": ["questionId", "question", "answer", "rawResponse", "passed"],
    "properties": {
        "questionId": {"type": "string"},
        "question": {"type": "string"},
        "answer": {"type": "string"},
        "rawResponse": {"type": "string"},
        "passed": {"type": "boolean"},
        "sources": {"type": "array", "items": _SOURCE},
        "critical": {"type": "boolean"},
        "weight": {"type": "number", "minimum": 0},
    },
}

_RUN = {
    "type": "object",
    "required": [
        "id",
        "packId",
        "projectId",
        "results",
        "baseScore",
        "finalScore",
        "hasCriticalFail",
        "verdict",
        "completedAt",
    ],
    "properties": {
        "id": {"type": "string"},
        "packId": {"type": "string"},
        "projectId": {"type": "string"},
        "results": {"type": "array", "items": _RESULT},
        "baseScore": {"type": "integer"},
        "finalScore": {"type": "integer"},
        "hasCriticalFail": {"type": "boolean"},
        "verdict": {"type": "string"},
        "completedAt": {"type": "string"},
    },
}

HISTORY_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "packrunner history",
    "type": "object",
    "required": ["version", "results"],
    "properties": {
        "version": {"type": "integer", "const": HISTORY_FORMAT_VERSION},
        "results": {
            "type": "array",
            "items": {
                "type": "object",
                "required": [
                    "id",
                    "packId",
                    "packName",
                    "projectId",
                    "projectName",
                    "testRun",
                    "createdAt",
                ],
                "properties": {
                    "id": {"type": "string"},
                    "packId": {"type": "string"},
                    "packName": {"type": "string"},
                    "projectId": {"type": "string"},
                    "projectName": {"type": "string"},
                    "testRun": _RUN,
                    "createdAt": {"type": "string"},
                },
            },
        },
    },
}

"""
Schema definitions for the Scout test event data stream.

Each component template maps one field group of the event document;
the index template composes them and binds to the data stream's name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

COMPONENT_TEMPLATE_PREFIX = "scout-test-event.mappings"

_KEYWORD = {"type": "keyword"}
_DURATION = {"type": "double"}
_TITLE = {
    "type": "text",
    "fields": {"keyword": {"type": "keyword", "ignore_above": 1024}},
}


# ─────────────────────────────────────────────────────────────────────────────
# Field mappings
# ─────────────────────────────────────────────────────────────────────────────

environment_properties: dict[str, Any] = {
    "host": {
        "type": "object",
        "properties": {
            "hostname": _KEYWORD,
            "architecture": _KEYWORD,
            "os": {
                "type": "object",
                "properties": {
                    "platform": _KEYWORD,
                    "release": _KEYWORD,
                    "name": _KEYWORD,
                },
            },
        },
    },
    "process": {
        "type": "object",
        "properties": {
            "python_version": _KEYWORD,
            "implementation": _KEYWORD,
        },
    },
    "ci": {
        "type": "object",
        "properties": {
            "provider": _KEYWORD,
            "build_id": _KEYWORD,
            "build_number": _KEYWORD,
            "build_url": _KEYWORD,
            "job_id": _KEYWORD,
            "branch": _KEYWORD,
            "commit": _KEYWORD,
            "pipeline": _KEYWORD,
        },
    },
}

test_run_properties: dict[str, Any] = {
    "id": _KEYWORD,
    "status": _KEYWORD,
    "duration": _DURATION,
}

suite_properties: dict[str, Any] = {
    "title": _TITLE,
    "type": _KEYWORD,
}

test_properties: dict[str, Any] = {
    "id": _KEYWORD,
    "title": _TITLE,
    "tags": _KEYWORD,
    "annotations": {
        "type": "object",
        "properties": {
            "type": _KEYWORD,
            "description": {"type": "text"},
        },
    },
    "expected_status": _KEYWORD,
    "status": _KEYWORD,
    "duration": _DURATION,
    "step": {
        "type": "object",
        "properties": {
            "title": _TITLE,
            "category": _KEYWORD,
            "duration": _DURATION,
        },
    },
}

event_properties: dict[str, Any] = {
    "action": _KEYWORD,
    "error": {
        "type": "object",
        "properties": {
            "message": {"type": "text"},
            "stack_trace": {"type": "text", "index": False},
        },
    },
}


# ─────────────────────────────────────────────────────────────────────────────
# Templates
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ComponentTemplate:
    name: str
    properties: dict[str, Any]

    @property
    def body(self) -> dict[str, Any]:
        return {"template": {"mappings": {"properties": self.properties}}}


def _object_template(suffix: str, field_name: str, properties: dict[str, Any]) -> ComponentTemplate:
    return ComponentTemplate(
        name=f"{COMPONENT_TEMPLATE_PREFIX}.{suffix}",
        properties={field_name: {"type": "object", "properties": properties}},
    )


environment_mappings = ComponentTemplate(
    name=f"{COMPONENT_TEMPLATE_PREFIX}.environment",
    properties=environment_properties,
)
test_run_mappings = _object_template("test-run", "test_run", test_run_properties)
suite_mappings = _object_template("suite", "suite", suite_properties)
test_mappings = _object_template("test", "test", test_properties)

COMPONENT_TEMPLATES: tuple[ComponentTemplate, ...] = (
    environment_mappings,
    test_run_mappings,
    suite_mappings,
    test_mappings,
)


@dataclass(frozen=True)
class IndexTemplate:
    name: str
    body: dict[str, Any]


def build_index_template(data_stream: str, priority: int = 500) -> IndexTemplate:
    """
    Build the index template for a data stream.

    Args:
        data_stream: Data stream name; the template matches ``<data_stream>*``
        priority: Template priority (must beat built-in templates)
    """
    return IndexTemplate(
        name=data_stream,
        body={
            "index_patterns": [f"{data_stream}*"],
            "data_stream": {},
            "priority": priority,
            "composed_of": [template.name for template in COMPONENT_TEMPLATES],
            "template": {
                "mappings": {
                    "properties": {
                        "@timestamp": {"type": "date"},
                        "event": {"type": "object", "properties": event_properties},
                    },
                },
            },
            "_meta": {"managed_by": "scout"},
        },
    )

"""Structural validation for sync config and package descriptor documents.

Both documents are checked against a small JSON Schema subset before any
field is read, so the decision engine only ever sees fully-populated values.
"""

from __future__ import annotations

import re

_STRING_LIST: dict = {"type": "array", "items": {"type": "string", "minLength": 1}}

# The sync policy document (.runtipi-sync/config.json).
SYNC_CONFIG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Upstream sync configuration",
    "type": "object",
    "required": [
        "syncMode",
        "allowlist",
        "blocklist",
        "customApps",
        "versionComparisonRules",
    ],
    "properties": {
        "upstream": {
            "type": "object",
            "required": ["url", "branch"],
            "properties": {
                "url": {"type": "string", "minLength": 1},
                "branch": {"type": "string", "minLength": 1},
            },
        },
        "strategy": {"type": "string"},
        "branches": {
            "type": "object",
            "required": ["upstream", "custom", "main"],
            "properties": {
                "upstream": {"type": "string", "minLength": 1},
                "custom": {"type": "string", "minLength": 1},
                "main": {"type": "string", "minLength": 1},
            },
        },
        "syncMode": {"type": "string", "enum": ["allowlist", "blocklist"]},
        "allowlist": _STRING_LIST,
        "blocklist": _STRING_LIST,
        "preserveCustomApps": {"type": "boolean"},
        "customApps": _STRING_LIST,
        "versionComparisonRules": {
            "type": "object",
            "required": ["requireComparableTipiVersion", "tipiVersionMaxGap"],
            "properties": {
                "keepIfNewerAppVersion": {"type": "boolean"},
                "requireComparableTipiVersion": {"type": "boolean"},
                "tipiVersionMaxGap": {"type": "integer", "minimum": 0},
            },
        },
    },
}

# A single app's config.json. Only the fields the sync decision reads are
# required; app stores carry many more keys, which are ignored.
DESCRIPTOR_SCHEMA: dict = {
    "type": "object",
    "required": ["id", "version", "tipi_version", "updated_at"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "tipi_version": {"type": "integer", "minimum": 0},
        "updated_at": {"type": "integer", "minimum": 0},
    },
}


def validate_document(data, schema: dict) -> list[str]:
    """Validate parsed JSON/YAML data against a schema node.

    Returns:
        List of error messages. Empty list means valid.
    """
    issues: list[str] = []
    _validate_node(data, schema, "", issues)
    return issues


def _validate_node(data, schema: dict, path: str, issues: list[str]):
    """Recursively validate data against a JSON Schema node."""
    schema_type = schema.get("type")

    if schema_type and not _type_matches(data, schema_type):
        issues.append(f"{path or '/'}: expected type '{schema_type}', got {type(data).__name__}")
        return

    if "enum" in schema and data not in schema["enum"]:
        issues.append(f"{path or '/'}: value '{data}' not in allowed values {schema['enum']}")

    if schema_type == "string":
        min_len = schema.get("minLength", 0)
        if len(data) < min_len:
            issues.append(f"{path or '/'}: string too short (min {min_len}, got {len(data)})")
        if "pattern" in schema and not re.match(schema["pattern"], data):
            issues.append(f"{path or '/'}: string '{data}' does not match pattern '{schema['pattern']}'")

    if schema_type == "integer" and "minimum" in schema and data < schema["minimum"]:
        issues.append(f"{path or '/'}: value {data} is below minimum {schema['minimum']}")

    if schema_type == "object":
        for req in schema.get("required", []):
            if req not in data:
                issues.append(f"{path or '/'}: missing required property '{req}'")

        props = schema.get("properties", {})
        for key, value in data.items():
            if key in props:
                _validate_node(value, props[key], f"{path}.{key}", issues)

    if schema_type == "array":
        items_schema = schema.get("items")
        if items_schema:
            for i, item in enumerate(data):
                _validate_node(item, items_schema, f"{path}[{i}]", issues)


def _type_matches(data, schema_type: str) -> bool:
    """Check if data matches the expected JSON Schema type."""
    type_map = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
        "null": type(None),
    }
    expected = type_map.get(schema_type)
    if expected is None:
        return True
    # bool is an int subclass, but true/false is never a valid counter
    if schema_type in ("integer", "number") and isinstance(data, bool):
        return False
    return isinstance(data, expected)

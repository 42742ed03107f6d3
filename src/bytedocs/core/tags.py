"""Struct tag vocabulary: ``json``, ``binding``, ``validate`` and ``example``."""

import json
import re
from typing import Any

_TAG_PAIR = re.compile(r'([^\s:"]+):"((?:[^"\\]|\\.)*)"')
_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def lookup_tag(tag: str, key: str) -> str:
    """Return the value stored under ``key`` in a conventional struct tag."""
    for match in _TAG_PAIR.finditer(tag):
        if match.group(1) == key:
            raw = match.group(2)
            try:
                return json.loads(f'"{raw}"')
            except ValueError:
                return raw
    return ""


def lower_first(value: str) -> str:
    if not value:
        return value
    return value[0].lower() + value[1:]


def resolve_json_field_name(field_name: str, json_tag: str) -> tuple[str, bool]:
    """Return ``(name, skip)`` for a struct field."""
    if json_tag == "-":
        return "", True
    if json_tag:
        name = json_tag.split(",")[0]
        if name:
            return name, False
    if not field_name:
        return "", True
    return lower_first(field_name), False


def is_field_required(json_tag: str, binding_tag: str, validate_tag: str) -> bool:
    if "omitempty" in json_tag or "omitempty" in binding_tag:
        return False
    return "required" in binding_tag or "required" in validate_tag


def _parse_bool(value: str) -> bool | None:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


def convert_example_value(raw: str, schema: dict[str, Any] | None, fallback: Any) -> Any:
    """Coerce an ``example`` tag value to the kind declared by ``schema``.

    Object and array literals are parsed as JSON; numbers and booleans are
    coerced when the schema says so; everything else stays a raw string.
    """
    trimmed = raw.strip()
    if not trimmed:
        return fallback

    if trimmed.startswith(("{", "[")):
        try:
            return json.loads(trimmed)
        except ValueError:
            pass

    kind = schema.get("type") if schema else None
    if kind == "integer":
        try:
            return int(trimmed)
        except ValueError:
            pass
    elif kind == "number":
        try:
            return float(trimmed)
        except ValueError:
            pass
    elif kind == "boolean":
        parsed = _parse_bool(trimmed)
        if parsed is not None:
            return parsed

    return raw

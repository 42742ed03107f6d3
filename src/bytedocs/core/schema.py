"""Turn type expressions into JSON-schema fragments plus example values.

Every schema is a plain ``dict`` that is freshly allocated per call, so
callers may decorate it (for instance with a field ``description``) without
affecting other results.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

from bytedocs.core.resolver import ExpressionTypeResolver, marshal_argument
from bytedocs.core.syntax import (
    ArrayType,
    BasicLit,
    Call,
    CompositeLit,
    Expr,
    Ident,
    InterfaceType,
    KeyValue,
    MapType,
    Selector,
    Star,
    StructType,
    Unary,
    expr_to_string,
)
from bytedocs.core.tags import convert_example_value, is_field_required, lookup_tag, resolve_json_field_name

Schema = dict[str, Any]
SchemaResult = tuple[Schema | None, Any]

DATE_TIME_EXAMPLE = "2024-01-01T00:00:00Z"
UUID_EXAMPLE = "123e4567-e89b-12d3-a456-426614174000"

_FORMAT_EXAMPLES = {
    "date-time": DATE_TIME_EXAMPLE,
    "uuid": UUID_EXAMPLE,
}

_WELL_KNOWN_TYPES: dict[str, tuple[Schema, Any]] = {
    "time.Time": ({"type": "string", "format": "date-time"}, DATE_TIME_EXAMPLE),
    "time.Duration": ({"type": "integer", "format": "int64"}, 0),
    "uuid.UUID": ({"type": "string", "format": "uuid"}, UUID_EXAMPLE),
    "guuid.UUID": ({"type": "string", "format": "uuid"}, UUID_EXAMPLE),
    "json.RawMessage": ({"type": "object"}, {}),
    "json.Number": ({"type": "number"}, 0),
    "sql.NullString": ({"type": "string"}, "string"),
    "sql.NullBool": ({"type": "boolean"}, False),
    "sql.NullInt16": ({"type": "integer"}, 0),
    "sql.NullInt32": ({"type": "integer", "format": "int32"}, 0),
    "sql.NullInt64": ({"type": "integer", "format": "int64"}, 0),
    "sql.NullFloat64": ({"type": "number", "format": "double"}, 0.0),
    "sql.NullTime": ({"type": "string", "format": "date-time"}, DATE_TIME_EXAMPLE),
}

# Framework map aliases whose literals are built like untyped maps.
MAP_ALIASES = frozenset({"gin.H", "echo.Map", "fiber.Map"})

_INTEGER_NAMES = {"int", "int8", "int16", "int32", "int64", "uint", "uint8", "uint16", "uint32", "uint64", "uintptr"}


def primitive_schema(name: str) -> SchemaResult:
    lower = name.lower()
    if lower in ("string", "rune"):
        return {"type": "string"}, "string"
    if lower == "bool":
        return {"type": "boolean"}, True
    if lower in _INTEGER_NAMES:
        schema: Schema = {"type": "integer"}
        if lower in ("int32", "uint32"):
            schema["format"] = "int32"
        elif lower in ("int64", "uint64"):
            schema["format"] = "int64"
        return schema, 0
    if lower in ("float32", "float64"):
        return {"type": "number", "format": "float" if lower == "float32" else "double"}, 0.0
    if lower == "byte":
        return {"type": "integer", "format": "int32"}, 0
    if lower in ("interface{}", "any"):
        return {"type": "object"}, {}
    return None, None


def default_example(schema: Schema | None) -> Any:
    """Synthesise an example purely from the shape of ``schema``."""
    if not isinstance(schema, dict):
        return None
    match schema.get("type"):
        case "string":
            return _FORMAT_EXAMPLES.get(schema.get("format", ""), "string")
        case "integer":
            return 0
        case "number":
            return 0.0
        case "boolean":
            return False
        case "array":
            item = default_example(schema.get("items"))
            return [item] if item is not None else []
        case "object":
            properties = schema.get("properties")
            if isinstance(properties, dict):
                return {key: default_example(value) for key, value in properties.items()}
            return {}
    return None


def normalize_example(schema: Schema | None, example: Any) -> Any:
    """Re-key object examples to the schema's property names, case-insensitively.

    Keys with no matching property are kept as they are.
    """
    if not isinstance(schema, dict) or example is None:
        return example

    kind = schema.get("type")
    if kind == "array":
        if not isinstance(example, list):
            return example
        return [normalize_example(schema.get("items"), item) for item in example]

    if kind != "object" or not isinstance(example, dict):
        return example
    properties = schema.get("properties")
    if not properties:
        return example

    normalized: dict[str, Any] = {}
    used: set[str] = set()
    for name, property_schema in properties.items():
        value = None
        if name in example:
            value = example[name]
            used.add(name)
        else:
            for key, candidate in example.items():
                if key.lower() == name.lower():
                    value = candidate
                    used.add(key)
                    break
        if value is not None:
            normalized[name] = normalize_example(property_schema, value)

    for key, value in example.items():
        if key not in used:
            normalized[key] = value
    return normalized


def _literal_key(expr: Expr) -> str:
    match expr:
        case BasicLit(kind="string", value=str(value)):
            return value
        case Ident(name=name):
            return name
    return ""


def _strip_address(expr: Expr) -> Expr:
    while isinstance(expr, Unary) and expr.op == "&":
        expr = expr.operand
    return expr


def _fill_elided(expr: Expr, element_type: Expr | None) -> Expr:
    """Give ``{...}`` elements of a typed slice or map literal their implied type."""
    expr = _strip_address(expr)
    if element_type is not None and isinstance(expr, CompositeLit) and expr.type is None:
        if isinstance(element_type, Star):
            element_type = element_type.operand
        return CompositeLit(element_type, expr.elements)
    return expr


class SchemaBuilder:
    """Builds ``(schema, example)`` pairs for expressions seen in one handler."""

    def __init__(self, resolver: ExpressionTypeResolver) -> None:
        self.resolver = resolver
        self.catalog = resolver.catalog

    def build(self, expr: Expr | None, visited: set[str] | None = None) -> SchemaResult:
        if visited is None:
            visited = set()
        match expr:
            case CompositeLit():
                return self._composite(expr, visited)
            case Star(operand=operand):
                return self.build(operand, visited)
            case BasicLit():
                return self._literal(expr)
            case Ident(name=name):
                return self._ident(name, visited)
            case ArrayType(element=element):
                item_schema, item_example = self.build(element, visited)
                if item_schema is None:
                    return None, None
                return {"type": "array", "items": item_schema}, [item_example] if item_example is not None else []
            case MapType(value=value):
                value_schema, value_example = self.build(value, visited)
                schema: Schema = {"type": "object"}
                if value_schema is not None:
                    schema["additionalProperties"] = value_schema
                return schema, {"key": value_example} if value_example is not None else {}
            case InterfaceType():
                return {"type": "object"}, {}
            case StructType():
                return self.build_struct(expr, visited)
            case Selector():
                return self._selector(expr, visited)
            case Call():
                return self._call(expr, visited)
        return None, None

    def build_struct(self, struct: StructType, visited: set[str]) -> tuple[Schema, dict[str, Any]]:
        properties: dict[str, Any] = {}
        example: dict[str, Any] = {}
        required: list[str] = []

        for field in struct.fields:
            if not field.names:
                embedded_schema, embedded_example = self.build(field.type, visited)
                if isinstance(embedded_schema, dict):
                    properties.update(embedded_schema.get("properties", {}))
                    required.extend(embedded_schema.get("required", []))
                if isinstance(embedded_example, dict):
                    example.update(embedded_example)
                continue

            json_tag = lookup_tag(field.tag, "json")
            is_required = is_field_required(json_tag, lookup_tag(field.tag, "binding"), lookup_tag(field.tag, "validate"))
            tag_example = lookup_tag(field.tag, "example")

            for name in field.names:
                json_name, skip = resolve_json_field_name(name, json_tag)
                if skip:
                    continue
                schema, field_example = self.build(field.type, visited)
                if schema is None:
                    continue
                if field.comment:
                    schema["description"] = field.comment
                if tag_example:
                    field_example = convert_example_value(tag_example, schema, field_example)
                if field_example is None:
                    field_example = default_example(schema)

                properties[json_name] = schema
                if is_required:
                    required.append(json_name)
                if field_example is not None:
                    example[json_name] = field_example

        result: Schema = {"type": "object", "properties": properties}
        if required:
            result["required"] = required
        return result, example

    def _guarded(self, name: str, visited: set[str], build: Callable[[], SchemaResult]) -> SchemaResult:
        if name in visited:
            return {"type": "object"}, {}
        visited.add(name)
        try:
            return build()
        finally:
            visited.discard(name)

    def _literal(self, literal: BasicLit) -> SchemaResult:
        match literal:
            case BasicLit(kind="int", value=int(value)):
                return {"type": "integer"}, value
            case BasicLit(kind="float", value=float(value)):
                return {"type": "number"}, value
            case BasicLit(kind="bool", value=bool(value)):
                return {"type": "boolean"}, value
        return {"type": "string"}, literal.value

    def _ident(self, name: str, visited: set[str]) -> SchemaResult:
        binding = self.resolver.binding(name)
        marker = f"var:{name}"
        if binding is not None and marker not in visited:
            visited.add(marker)
            try:
                if binding.origin is not None:
                    schema, example = self.build(binding.origin, visited)
                    if schema is not None:
                        return schema, example
                return self.build(binding.declared_type, visited)
            finally:
                visited.discard(marker)

        schema, example = primitive_schema(name)
        if schema is not None:
            return schema, example

        struct = self.catalog.structs.get(name)
        if struct is not None:
            return self._guarded(name, visited, lambda: self.build_struct(struct, visited))

        underlying = self.catalog.named_types.get(name)
        if underlying is not None:
            return self._guarded(name, visited, lambda: self.build(underlying, visited))

        return {"type": "string"}, ""

    def _selector(self, selector: Selector, visited: set[str]) -> SchemaResult:
        full_name = expr_to_string(selector)
        if full_name in _WELL_KNOWN_TYPES:
            return copy.deepcopy(_WELL_KNOWN_TYPES[full_name])
        if full_name in MAP_ALIASES:
            return {"type": "object"}, {}

        field_type = self.resolver.resolve_type_from_arg(selector)
        if field_type != selector:
            return self.build(field_type, visited)
        return {"type": "string"}, ""

    def _call(self, call: Call, visited: set[str]) -> SchemaResult:
        marshalled = marshal_argument(call)
        if marshalled is not None:
            return self.build(marshalled, visited)

        results = self.resolver.call_results(call)
        if results:
            return self.build(results[0], visited)

        match call.func:
            case ArrayType() | MapType():
                return self.build(call.func, visited)
            case Ident(name=name) if primitive_schema(name)[0] is not None or name in self.catalog.structs:
                return self.build(call.func, visited)
        return {"type": "object"}, {}

    def _composite(self, literal: CompositeLit, visited: set[str]) -> SchemaResult:
        match literal.type:
            case None:
                return self._map_literal(literal, None, visited)
            case StructType() as struct:
                schema, example = self.build_struct(struct, visited)
                example.update(self._struct_literal_example(literal, struct, visited))
                return schema, example
            case Ident(name=name) if name in self.catalog.structs:
                struct = self.catalog.structs[name]
                schema, example = self._guarded(name, visited, lambda: self.build_struct(struct, visited))
                if isinstance(example, dict):
                    example = {**example, **self._struct_literal_example(literal, struct, visited)}
                return schema, example
            case Ident(name=name) if name in self.catalog.named_types:
                underlying = self.catalog.named_types[name]
                return self._guarded(
                    name, visited, lambda: self._composite(CompositeLit(underlying, literal.elements), visited)
                )
            case MapType(value=value):
                return self._map_literal(literal, value, visited)
            case ArrayType(element=element):
                return self._array_literal(literal, element, visited)
            case Selector() as selector if expr_to_string(selector) in MAP_ALIASES:
                return self._map_literal(literal, None, visited)
        return self.build(literal.type, visited)

    def _array_literal(self, literal: CompositeLit, element: Expr, visited: set[str]) -> SchemaResult:
        item_schema, _ = self.build(element, visited)
        examples: list[Any] = []
        for item in literal.elements:
            _, item_example = self.build(_fill_elided(item, element), visited)
            if item_example is None:
                item_example = default_example(item_schema)
            if item_example is not None:
                examples.append(item_example)
        if not examples:
            fallback = default_example(item_schema)
            if fallback is not None:
                examples.append(fallback)

        schema: Schema = {"type": "array"}
        if item_schema is not None:
            schema["items"] = item_schema
        return schema, examples

    def _map_literal(self, literal: CompositeLit, value_type: Expr | None, visited: set[str]) -> SchemaResult:
        properties: dict[str, Any] = {}
        example: dict[str, Any] = {}
        for element in literal.elements:
            if not isinstance(element, KeyValue):
                continue
            key = _literal_key(element.key)
            if not key:
                continue
            value_schema, value_example = self.build(_fill_elided(element.value, value_type), visited)
            if value_schema is not None:
                properties[key] = value_schema
            if value_example is None:
                value_example = default_example(value_schema)
            if value_example is not None:
                example[key] = value_example

        schema: Schema = {"type": "object"}
        if properties:
            schema["properties"] = properties
        else:
            schema["additionalProperties"] = {"type": "string"}
        return schema, example

    def _struct_literal_example(self, literal: CompositeLit, struct: StructType, visited: set[str]) -> dict[str, Any]:
        """Example values taken from the fields a struct literal sets.

        Fields whose tag declares an explicit ``example`` keep that value.
        """
        slots = [(name, field) for field in struct.fields for name in (field.names or (None,))]
        keyed = {name: field for name, field in slots if name is not None}

        assignments = []
        if literal.elements and not any(isinstance(e, KeyValue) for e in literal.elements):
            assignments = [(name, field, value) for (name, field), value in zip(slots, literal.elements, strict=False)]
        else:
            for element in literal.elements:
                if isinstance(element, KeyValue) and isinstance(element.key, Ident) and element.key.name in keyed:
                    assignments.append((element.key.name, keyed[element.key.name], element.value))

        example: dict[str, Any] = {}
        for name, field, value in assignments:
            if name is None or lookup_tag(field.tag, "example"):
                continue
            json_name, skip = resolve_json_field_name(name, lookup_tag(field.tag, "json"))
            if skip or not json_name:
                continue
            _, field_example = self.build(_fill_elided(value, field.type), visited)
            if field_example is None:
                field_schema, _ = self.build(field.type, visited)
                field_example = default_example(field_schema)
            if field_example is not None:
                example[json_name] = field_example
        return example

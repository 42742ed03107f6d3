"""Tests for schema and example construction."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from bytedocs.core.catalog import TypeCatalog
from bytedocs.core.resolver import ExpressionTypeResolver
from bytedocs.core.schema import (
    DATE_TIME_EXAMPLE,
    SchemaBuilder,
    default_example,
    normalize_example,
    primitive_schema,
)
from bytedocs.core.source import ParsedFile, ParsedPackage
from bytedocs.core.syntax import Ident, MapType, Selector, walk

ParseGo = Callable[..., ParsedFile]

_TYPES = """
package main

type User struct {
    ID      int       `json:"id" binding:"required" example:"7"`
    Name    string    `json:"name" validate:"required"` // Display name
    Email   string    `json:"email,omitempty"`
    Secret  string    `json:"-"`
    Tags    []string  `json:"tags"`
    Created time.Time `json:"created_at"`
}

type Node struct {
    Value    int     `json:"value"`
    Children []Node  `json:"children"`
    Parent   *Node   `json:"parent"`
}

type Audit struct {
    CreatedBy string `json:"created_by"`
}

type Post struct {
    Audit
    Title string `json:"title" binding:"required"`
}

type Status string
"""


def _builder(parse_go: ParseGo, body: str = "") -> SchemaBuilder:
    types = parse_go(_TYPES, path="types.go")
    handler = parse_go(f"package main\n\nfunc h() {{\n{body}\n}}\n", path="handler.go")
    catalog = TypeCatalog.from_package(ParsedPackage("pkg", (types, handler)))
    resolver = ExpressionTypeResolver(catalog)
    fn = handler.functions[0]
    assert fn.body is not None
    for node in walk(fn.body):
        resolver.register(node)
    return SchemaBuilder(resolver)


class TestPrimitives:
    @pytest.mark.parametrize(
        ("name", "schema", "example"),
        [
            ("string", {"type": "string"}, "string"),
            ("bool", {"type": "boolean"}, True),
            ("int", {"type": "integer"}, 0),
            ("int64", {"type": "integer", "format": "int64"}, 0),
            ("uint32", {"type": "integer", "format": "int32"}, 0),
            ("float32", {"type": "number", "format": "float"}, 0.0),
            ("float64", {"type": "number", "format": "double"}, 0.0),
            ("interface{}", {"type": "object"}, {}),
        ],
    )
    def test_primitive(self, name: str, schema: dict[str, Any], example: Any) -> None:
        assert primitive_schema(name) == (schema, example)

    def test_unknown_name(self) -> None:
        assert primitive_schema("User") == (None, None)


class TestStructs:
    """Struct declarations become object schemas."""

    def test_tags_comments_and_required(self, parse_go: ParseGo) -> None:
        schema, example = _builder(parse_go).build(Ident("User"))

        assert schema == {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string", "description": "Display name"},
                "email": {"type": "string"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "created_at": {"type": "string", "format": "date-time"},
            },
            "required": ["id", "name"],
        }
        assert example == {
            "id": 7,
            "name": "string",
            "email": "string",
            "tags": ["string"],
            "created_at": DATE_TIME_EXAMPLE,
        }

    def test_embedded_fields_are_flattened(self, parse_go: ParseGo) -> None:
        schema, example = _builder(parse_go).build(Ident("Post"))

        assert schema is not None
        assert list(schema["properties"]) == ["created_by", "title"]
        assert schema["required"] == ["title"]
        assert example == {"created_by": "string", "title": "string"}

    def test_self_reference_terminates(self, parse_go: ParseGo) -> None:
        schema, _ = _builder(parse_go).build(Ident("Node"))

        assert schema is not None
        assert schema["properties"]["children"] == {"type": "array", "items": {"type": "object"}}
        assert schema["properties"]["parent"] == {"type": "object"}

    def test_named_type_resolves_to_underlying(self, parse_go: ParseGo) -> None:
        assert _builder(parse_go).build(Ident("Status")) == ({"type": "string"}, "string")

    def test_schemas_are_fresh_per_call(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go)
        first, _ = builder.build(Ident("User"))
        assert first is not None
        first["properties"]["id"]["description"] = "mutated"

        second, _ = builder.build(Ident("User"))
        assert second is not None
        assert "description" not in second["properties"]["id"]


class TestLiterals:
    """Composite literals contribute their values as examples."""

    def test_struct_literal_values_override_defaults(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go, '\tu := User{Name: "Ann", Email: "ann@example.com"}')
        _, example = builder.build(Ident("u"))

        assert example["name"] == "Ann"
        assert example["email"] == "ann@example.com"

    def test_example_tag_beats_literal_value(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go, "\tu := User{ID: 99}")
        _, example = builder.build(Ident("u"))

        assert example["id"] == 7

    def test_map_literal_properties(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go, '\tresp := gin.H{"message": "ok", "count": 3}')
        schema, example = builder.build(Ident("resp"))

        assert schema == {
            "type": "object",
            "properties": {"message": {"type": "string"}, "count": {"type": "integer"}},
        }
        assert example == {"message": "ok", "count": 3}

    def test_empty_map_literal_is_open(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go, "\tresp := gin.H{}")
        assert builder.build(Ident("resp")) == ({"type": "object", "additionalProperties": {"type": "string"}}, {})

    def test_slice_literal_with_elided_types(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go, '\tusers := []User{{Name: "A"}, {Name: "B"}}')
        schema, example = builder.build(Ident("users"))

        assert schema is not None
        assert schema["type"] == "array"
        assert schema["items"]["type"] == "object"
        assert [item["name"] for item in example] == ["A", "B"]

    def test_marshalled_value(self, parse_go: ParseGo) -> None:
        builder = _builder(parse_go, '\tpayload, _ := json.Marshal(gin.H{"ok": true})')
        schema, example = builder.build(Ident("payload"))

        assert schema == {"type": "object", "properties": {"ok": {"type": "boolean"}}}
        assert example == {"ok": True}


class TestSpecialTypes:
    def test_declared_map_type_is_open(self, parse_go: ParseGo) -> None:
        schema, example = _builder(parse_go).build(MapType(Ident("string"), Ident("int")))
        assert schema == {"type": "object", "additionalProperties": {"type": "integer"}}
        assert example == {"key": 0}

    def test_well_known_selector(self, parse_go: ParseGo) -> None:
        schema, example = _builder(parse_go).build(Selector(Ident("uuid"), "UUID"))
        assert schema == {"type": "string", "format": "uuid"}
        assert isinstance(example, str)

    def test_unknown_identifier_degrades_to_string(self, parse_go: ParseGo) -> None:
        assert _builder(parse_go).build(Ident("Mystery")) == ({"type": "string"}, "")

    def test_none_expression(self, parse_go: ParseGo) -> None:
        assert _builder(parse_go).build(None) == (None, None)


class TestExamples:
    def test_default_example_from_schema(self) -> None:
        schema = {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "when": {"type": "string", "format": "date-time"},
                "tags": {"type": "array", "items": {"type": "string"}},
            },
        }
        assert default_example(schema) == {"id": 0, "when": DATE_TIME_EXAMPLE, "tags": ["string"]}

    def test_normalize_rekeys_case_insensitively(self) -> None:
        schema = {"type": "object", "properties": {"userId": {"type": "integer"}, "name": {"type": "string"}}}
        example = {"UserID": 5, "name": "x", "extra": 1}
        assert normalize_example(schema, example) == {"userId": 5, "name": "x", "extra": 1}

    def test_normalize_descends_into_arrays(self) -> None:
        schema = {"type": "array", "items": {"type": "object", "properties": {"id": {"type": "integer"}}}}
        assert normalize_example(schema, [{"ID": 1}]) == [{"id": 1}]

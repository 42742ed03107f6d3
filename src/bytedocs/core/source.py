"""Parse Go packages with tree-sitter into the immutable syntax union."""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from bytedocs.core.comments import join_comment
from bytedocs.core.syntax import (
    ArrayType,
    Assign,
    BasicLit,
    Block,
    Call,
    CompositeLit,
    Expr,
    Field,
    FuncDecl,
    FuncLit,
    Ident,
    InterfaceType,
    KeyValue,
    MapType,
    Other,
    Param,
    Range,
    Selector,
    Star,
    StructType,
    TypeSpec,
    Unary,
    VarSpec,
)
from bytedocs.core.syntax import (
    Node as SyntaxNode,
)
from bytedocs.errors import SourceParseError

logger = logging.getLogger(__name__)

_SOURCE_SUFFIX = ".go"
_TEST_SUFFIX = "_test.go"
_ARRAY_TYPES = {"slice_type", "array_type", "implicit_length_array_type"}
_SPEC_CONTAINERS = {"var_declaration", "const_declaration", "var_spec_list", "const_spec_list"}


@dataclass(frozen=True)
class ParsedFile:
    path: str
    functions: tuple[FuncDecl, ...]
    types: tuple[TypeSpec, ...]


@dataclass(frozen=True)
class ParsedPackage:
    directory: str
    files: tuple[ParsedFile, ...]

    def functions(self) -> Iterator[FuncDecl]:
        for parsed in self.files:
            yield from parsed.functions

    def types(self) -> Iterator[TypeSpec]:
        for parsed in self.files:
            yield from parsed.types


def is_analyzable_source(path: Path) -> bool:
    name = path.name
    return name.endswith(_SOURCE_SUFFIX) and not name.endswith(_TEST_SUFFIX)


def parse_source(source_bytes: bytes, path: str) -> ParsedFile:
    parser = get_parser("go")
    tree = parser.parse(source_bytes)
    root = tree.root_node
    if root.has_error:
        line = _first_error_line(root)
        raise SourceParseError(path, f"syntax error near line {line}")
    try:
        return _GoConverter(source_bytes, path).convert_file(root)
    except RecursionError as exc:
        raise SourceParseError(path, "expression nested too deeply") from exc


def load_package(directory: str | Path) -> ParsedPackage:
    """Parse every non-test ``.go`` file of ``directory``.

    Raises :class:`SourceParseError` when the directory is missing or any file
    cannot be read or parsed; no partial package is ever returned.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        raise SourceParseError(str(directory), "directory does not exist")

    files: list[ParsedFile] = []
    for path in sorted(root.iterdir()):
        if not path.is_file() or not is_analyzable_source(path):
            continue
        try:
            source_bytes = path.read_bytes()
        except OSError as exc:
            raise SourceParseError(str(path), str(exc)) from exc
        files.append(parse_source(source_bytes, str(path)))

    logger.debug("Parsed %d Go files in %s", len(files), root)
    return ParsedPackage(directory=str(root), files=tuple(files))


def _first_error_line(node: Node) -> int:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        stack.extend(reversed(current.children))
    return node.start_point[0] + 1


def _unquote(text: str) -> str:
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return text[1:-1]
    return value if isinstance(value, str) else text[1:-1]


def _parse_int(text: str) -> int | None:
    digits = text.replace("_", "")
    try:
        return int(digits, 0)
    except ValueError:
        pass
    try:
        return int(digits, 8)
    except ValueError:
        return None


def _is_doc_for(comments: list[Node], node: Node) -> bool:
    return bool(comments) and comments[-1].end_point[0] + 1 == node.start_point[0]


class _GoConverter:
    def __init__(self, source: bytes, path: str) -> None:
        self._source = source
        self._path = path

    def text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def convert_file(self, root: Node) -> ParsedFile:
        functions: list[FuncDecl] = []
        types: list[TypeSpec] = []
        pending: list[Node] = []

        for child in root.named_children:
            if child.type == "comment":
                if pending and pending[-1].end_point[0] + 1 < child.start_point[0]:
                    pending = []
                pending.append(child)
                continue

            doc = tuple(self.text(c) for c in pending) if _is_doc_for(pending, child) else ()
            pending = []
            if child.type in ("function_declaration", "method_declaration"):
                functions.append(self.func_decl(child, doc))
            elif child.type == "type_declaration":
                types.extend(self.type_specs(child))

        return ParsedFile(path=self._path, functions=tuple(functions), types=tuple(types))

    def func_decl(self, node: Node, doc: tuple[str, ...]) -> FuncDecl:
        receiver = None
        receiver_node = node.child_by_field_name("receiver")
        if receiver_node is not None:
            receivers = self.params(receiver_node)
            receiver = receivers[0] if receivers else None

        name_node = node.child_by_field_name("name")
        body_node = node.child_by_field_name("body")
        return FuncDecl(
            name=self.text(name_node) if name_node is not None else "",
            receiver=receiver,
            params=self.params(node.child_by_field_name("parameters")),
            results=self.results(node.child_by_field_name("result")),
            body=self.block(body_node) if body_node is not None else None,
            doc=doc,
            file_path=self._path,
            line=node.start_point[0] + 1,
        )

    def type_specs(self, node: Node) -> Iterator[TypeSpec]:
        for spec in node.named_children:
            if spec.type not in ("type_spec", "type_alias"):
                continue
            name_node = spec.child_by_field_name("name")
            type_node = spec.child_by_field_name("type")
            if name_node is None or type_node is None:
                continue
            yield TypeSpec(name=self.text(name_node), type=self.convert(type_node), alias=spec.type == "type_alias")

    def params(self, node: Node | None) -> tuple[Param, ...]:
        if node is None:
            return ()
        params: list[Param] = []
        for child in node.named_children:
            if child.type not in ("parameter_declaration", "variadic_parameter_declaration"):
                continue
            type_node = child.child_by_field_name("type")
            if type_node is None:
                continue
            variadic = child.type == "variadic_parameter_declaration"
            param_type = self.convert(type_node)
            if variadic:
                param_type = ArrayType(param_type)
            names = child.children_by_field_name("name")
            if names:
                params.extend(Param(self.text(n), param_type, variadic) for n in names)
            else:
                params.append(Param(None, param_type, variadic))
        return tuple(params)

    def results(self, node: Node | None) -> tuple[Expr, ...]:
        if node is None:
            return ()
        if node.type == "parameter_list":
            return tuple(p.type for p in self.params(node))
        return (self.convert(node),)

    def block(self, node: Node) -> Block:
        statements: list[SyntaxNode] = []
        for child in node.named_children:
            if child.type == "comment":
                continue
            if child.type == "statement_list":
                statements.extend(self.block(child).statements)
            else:
                statements.append(self.convert(child))
        return Block(tuple(statements))

    def expressions(self, node: Node | None) -> tuple[Expr, ...]:
        if node is None:
            return ()
        if node.type != "expression_list":
            return (self.convert(node),)
        return tuple(self.convert(c) for c in node.named_children if c.type != "comment")

    def struct_type(self, node: Node) -> StructType:
        list_node = next((c for c in node.named_children if c.type == "field_declaration_list"), None)
        if list_node is None:
            return StructType()

        children = list(list_node.named_children)
        fields: list[Field] = []
        pending: list[Node] = []
        last_field_row = -1

        for index, child in enumerate(children):
            if child.type == "comment":
                if child.start_point[0] == last_field_row:
                    continue
                if pending and pending[-1].end_point[0] + 1 < child.start_point[0]:
                    pending = []
                pending.append(child)
                continue
            if child.type != "field_declaration":
                pending = []
                continue

            comments = [self.text(c) for c in pending] if _is_doc_for(pending, child) else []
            pending = []
            last_field_row = child.end_point[0]

            trailing = [c for c in child.named_children if c.type == "comment"]
            if index + 1 < len(children):
                following = children[index + 1]
                if following.type == "comment" and following.start_point[0] == last_field_row:
                    trailing.append(following)
            if trailing:
                comments = [self.text(c) for c in trailing]

            fields.append(self.field(child, join_comment(comments)))

        return StructType(tuple(fields))

    def field(self, node: Node, comment: str) -> Field:
        names = tuple(self.text(n) for n in node.children_by_field_name("name"))
        type_node = node.child_by_field_name("type")
        field_type: Expr = self.convert(type_node) if type_node is not None else Ident("interface{}")
        if not names and any(c.type == "*" for c in node.children):
            field_type = Star(field_type)

        tag = ""
        tag_node = node.child_by_field_name("tag")
        if tag_node is not None:
            literal = self.convert(tag_node)
            if isinstance(literal, BasicLit) and isinstance(literal.value, str):
                tag = literal.value

        return Field(names=names, type=field_type, tag=tag, comment=comment)

    def specs(self, node: Node) -> Iterator[VarSpec]:
        for child in node.named_children:
            if child.type in _SPEC_CONTAINERS:
                yield from self.specs(child)
            elif child.type in ("var_spec", "const_spec"):
                type_node = child.child_by_field_name("type")
                yield VarSpec(
                    names=tuple(self.text(n) for n in child.children_by_field_name("name")),
                    type=self.convert(type_node) if type_node is not None else None,
                    values=self.expressions(child.child_by_field_name("value")),
                )

    def for_statement(self, node: Node) -> SyntaxNode:
        body_node = node.child_by_field_name("body")
        body = self.block(body_node) if body_node is not None else Block()
        clause = next((c for c in node.named_children if c.type == "range_clause"), None)
        if clause is None:
            nested = tuple(self.convert(c) for c in node.named_children if c.type not in ("comment", "block"))
            return Other("for_statement", (*nested, body))

        right = clause.child_by_field_name("right")
        return Range(
            targets=self.expressions(clause.child_by_field_name("left")),
            iterable=self.convert(right) if right is not None else Other("missing"),
            define=any(c.type == ":=" for c in clause.children),
            body=body,
        )

    def literal_value(self, node: Node) -> tuple[Expr, ...]:
        return tuple(self.convert(c) for c in node.named_children if c.type != "comment")

    def convert(self, node: Node) -> SyntaxNode:
        kind = node.type
        match kind:
            case "identifier" | "type_identifier" | "field_identifier" | "package_identifier":
                return Ident(self.text(node))
            case "nil" | "iota":
                return Ident(kind)
            case "true" | "false":
                return BasicLit("bool", kind == "true")
            case "interpreted_string_literal":
                return BasicLit("string", _unquote(self.text(node)))
            case "raw_string_literal":
                return BasicLit("string", self.text(node)[1:-1])
            case "rune_literal":
                return BasicLit("char", _unquote(self.text(node)))
            case "int_literal":
                number = _parse_int(self.text(node))
                return BasicLit("int", number) if number is not None else BasicLit("int", self.text(node))
            case "float_literal":
                raw = self.text(node).replace("_", "")
                try:
                    return BasicLit("float", float(raw))
                except ValueError:
                    return BasicLit("float", raw)
            case "qualified_type":
                package = node.child_by_field_name("package")
                name = node.child_by_field_name("name")
                return Selector(Ident(self.text(package) if package else ""), self.text(name) if name else "")
            case "selector_expression":
                operand = node.child_by_field_name("operand")
                field = node.child_by_field_name("field")
                if operand is None or field is None:
                    return Other(kind)
                return Selector(self.convert(operand), self.text(field))
            case "pointer_type":
                return Star(self._first_named(node))
            case "unary_expression":
                operator = node.child_by_field_name("operator")
                operand = node.child_by_field_name("operand")
                if operand is None:
                    return Other(kind)
                op = self.text(operator) if operator is not None else ""
                return Star(self.convert(operand)) if op == "*" else Unary(op, self.convert(operand))
            case "parenthesized_expression" | "parenthesized_type" | "literal_element" | "expression_statement":
                return self._first_named(node)
            case "call_expression":
                function = node.child_by_field_name("function")
                arguments = node.child_by_field_name("arguments")
                args = self.literal_value(arguments) if arguments is not None else ()
                return Call(self.convert(function) if function is not None else Other("missing"), args)
            case "variadic_argument":
                return self._first_named(node)
            case "type_conversion_expression":
                type_node = node.child_by_field_name("type")
                operand = node.child_by_field_name("operand")
                if type_node is None or operand is None:
                    return Other(kind)
                return Call(self.convert(type_node), (self.convert(operand),))
            case "composite_literal":
                type_node = node.child_by_field_name("type")
                body = node.child_by_field_name("body")
                return CompositeLit(
                    self.convert(type_node) if type_node is not None else None,
                    self.literal_value(body) if body is not None else (),
                )
            case "literal_value":
                return CompositeLit(None, self.literal_value(node))
            case "keyed_element":
                parts = [c for c in node.named_children if c.type != "comment"]
                if len(parts) < 2:
                    return Other(kind)
                return KeyValue(self.convert(parts[0]), self.convert(parts[1]))
            case _ if kind in _ARRAY_TYPES:
                element = node.child_by_field_name("element")
                return ArrayType(self.convert(element) if element is not None else Other("missing"))
            case "map_type":
                key = node.child_by_field_name("key")
                value = node.child_by_field_name("value")
                if key is None or value is None:
                    return Other(kind)
                return MapType(self.convert(key), self.convert(value))
            case "struct_type":
                return self.struct_type(node)
            case "interface_type":
                return InterfaceType()
            case "generic_type":
                base = node.child_by_field_name("type")
                return self.convert(base) if base is not None else Other(kind)
            case "func_literal":
                body_node = node.child_by_field_name("body")
                return FuncLit(
                    params=self.params(node.child_by_field_name("parameters")),
                    results=self.results(node.child_by_field_name("result")),
                    body=self.block(body_node) if body_node is not None else Block(),
                )
            case "block" | "statement_list":
                return self.block(node)
            case "short_var_declaration" | "assignment_statement":
                operator = node.child_by_field_name("operator")
                return Assign(
                    targets=self.expressions(node.child_by_field_name("left")),
                    values=self.expressions(node.child_by_field_name("right")),
                    define=kind == "short_var_declaration",
                    op=":=" if operator is None else self.text(operator),
                )
            case "var_declaration" | "const_declaration":
                return Block(tuple(self.specs(node)))
            case "for_statement":
                return self.for_statement(node)
            case _:
                return Other(kind, tuple(self.convert(c) for c in node.named_children if c.type != "comment"))

    def _first_named(self, node: Node) -> SyntaxNode:
        for child in node.named_children:
            if child.type != "comment":
                return self.convert(child)
        return Other(node.type)

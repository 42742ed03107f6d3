"""Immutable syntax union for analysed Go source.

Every construct the analyser reasons about is one of the frozen dataclasses
below. Instances are hashable, so they double as dictionary keys and as
values in variable scopes. Anything the analyser does not model is kept as
:class:`Other` so that its children can still be walked.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True)
class BasicLit:
    kind: str  # "string", "int", "float", "char" or "bool"
    value: str | int | float | bool


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class Selector:
    operand: Expr
    name: str


@dataclass(frozen=True)
class Star:
    operand: Expr


@dataclass(frozen=True)
class Unary:
    op: str
    operand: Expr


@dataclass(frozen=True)
class Call:
    func: Expr
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class KeyValue:
    key: Expr
    value: Expr


@dataclass(frozen=True)
class CompositeLit:
    type: Expr | None
    elements: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class ArrayType:
    element: Expr


@dataclass(frozen=True)
class MapType:
    key: Expr
    value: Expr


@dataclass(frozen=True)
class Field:
    """One struct field declaration; ``names`` is empty for embedded fields."""

    names: tuple[str, ...]
    type: Expr
    tag: str = ""
    comment: str = ""


@dataclass(frozen=True)
class StructType:
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class InterfaceType:
    pass


@dataclass(frozen=True)
class Param:
    name: str | None
    type: Expr
    variadic: bool = False


@dataclass(frozen=True)
class FuncLit:
    params: tuple[Param, ...]
    results: tuple[Expr, ...]
    body: Block


@dataclass(frozen=True)
class Other:
    kind: str
    children: tuple[Node, ...] = ()


Expr: TypeAlias = (
    BasicLit
    | Ident
    | Selector
    | Star
    | Unary
    | Call
    | KeyValue
    | CompositeLit
    | ArrayType
    | MapType
    | StructType
    | InterfaceType
    | FuncLit
    | Other
)


@dataclass(frozen=True)
class VarSpec:
    names: tuple[str, ...]
    type: Expr | None
    values: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Assign:
    targets: tuple[Expr, ...]
    values: tuple[Expr, ...]
    define: bool
    op: str = "="


@dataclass(frozen=True)
class Range:
    targets: tuple[Expr, ...]
    iterable: Expr
    define: bool
    body: Block


@dataclass(frozen=True)
class Block:
    statements: tuple[Node, ...] = ()


Stmt: TypeAlias = VarSpec | Assign | Range | Block
Node: TypeAlias = Expr | Stmt


@dataclass(frozen=True)
class FuncDecl:
    name: str
    receiver: Param | None
    params: tuple[Param, ...]
    results: tuple[Expr, ...]
    body: Block | None
    doc: tuple[str, ...]
    file_path: str
    line: int

    @property
    def receiver_type(self) -> str:
        return expr_to_string(self.receiver.type) if self.receiver else ""


@dataclass(frozen=True)
class TypeSpec:
    name: str
    type: Expr
    alias: bool = False


def children(node: Node) -> tuple[Node, ...]:
    match node:
        case Selector(operand=operand) | Star(operand=operand) | Unary(operand=operand):
            return (operand,)
        case Call(func=func, args=args):
            return (func, *args)
        case KeyValue(key=key, value=value):
            return (key, value)
        case CompositeLit(elements=elements):
            return elements
        case FuncLit(body=body):
            return (body,)
        case Other(children=nested):
            return nested
        case VarSpec(values=values):
            return values
        case Assign(targets=targets, values=values):
            return (*targets, *values)
        case Range(targets=targets, iterable=iterable, body=body):
            return (*targets, iterable, body)
        case Block(statements=statements):
            return statements
        case _:
            return ()


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every node below it in pre-order."""
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def expr_to_string(expr: Expr | None) -> str:
    match expr:
        case Ident(name=name):
            return name
        case Star(operand=operand):
            return "*" + expr_to_string(operand)
        case Selector(operand=operand, name=name):
            return expr_to_string(operand) + "." + name
        case ArrayType(element=element):
            return "[]" + expr_to_string(element)
        case MapType(key=key, value=value):
            return f"map[{expr_to_string(key)}]{expr_to_string(value)}"
        case InterfaceType():
            return "interface{}"
        case _:
            return ""

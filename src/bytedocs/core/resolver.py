"""Best-effort static type propagation through one function body."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from bytedocs.core.catalog import TypeCatalog
from bytedocs.core.syntax import (
    ArrayType,
    Assign,
    BasicLit,
    Call,
    CompositeLit,
    Expr,
    FuncDecl,
    FuncLit,
    Ident,
    InterfaceType,
    MapType,
    Node,
    Param,
    Range,
    Selector,
    Star,
    StructType,
    Unary,
    VarSpec,
    expr_to_string,
)

MARSHAL_CALLS = frozenset({"json.Marshal", "json.MarshalIndent", "xml.Marshal", "xml.MarshalIndent"})
_BYTES = ArrayType(Ident("byte"))
_DISCARD = "_"


@dataclass(frozen=True)
class VariableBinding:
    declared_type: Expr
    origin: Expr | None = None


def marshal_argument(expr: Expr) -> Expr | None:
    """Return the value serialised by a ``json.Marshal``-style call, if ``expr`` is one."""
    if isinstance(expr, Call) and isinstance(expr.func, Selector) and expr.args:
        if expr_to_string(expr.func) in MARSHAL_CALLS:
            return expr.args[0]
    return None


class ExpressionTypeResolver:
    """Flat, single-pass scope of local variables for one handler body.

    Short variable declarations never rebind a name that is already known.
    Plain ``=`` assignments are only tracked when ``track_reassignment`` is
    set, in which case the latest assignment wins.
    """

    def __init__(self, catalog: TypeCatalog, *, track_reassignment: bool = False) -> None:
        self.catalog = catalog
        self.track_reassignment = track_reassignment
        self.scope: dict[str, VariableBinding] = {}

    def binding(self, name: str) -> VariableBinding | None:
        return self.scope.get(name)

    def declared_type(self, name: str) -> Expr | None:
        binding = self.scope.get(name)
        return binding.declared_type if binding else None

    def origin(self, name: str) -> Expr | None:
        binding = self.scope.get(name)
        return binding.origin if binding else None

    def bind(self, name: str | None, declared_type: Expr, origin: Expr | None = None, *, overwrite: bool = False) -> None:
        if not name or name == _DISCARD:
            return
        if name in self.scope and not overwrite:
            return
        self.scope[name] = VariableBinding(declared_type, origin)

    def bind_function(self, fn: FuncDecl) -> None:
        if fn.receiver is not None:
            self.bind(fn.receiver.name, fn.receiver.type)
        self.bind_params(fn.params)

    def bind_params(self, params: Iterable[Param]) -> None:
        for param in params:
            self.bind(param.name, param.type)

    def register(self, node: Node) -> None:
        match node:
            case VarSpec():
                self.register_declaration(node)
            case Assign():
                self.register_assignment(node)
            case Range():
                self.register_range(node)
            case FuncLit(params=params):
                self.bind_params(params)

    def register_declaration(self, spec: VarSpec) -> None:
        inferred = self._infer_targets(len(spec.names), spec.values)
        for name, (value_type, origin) in zip(spec.names, inferred, strict=True):
            declared = spec.type if spec.type is not None else value_type
            if declared is not None:
                self.bind(name, declared, origin)

    def register_assignment(self, assign: Assign) -> None:
        if assign.define:
            overwrite = False
        elif self.track_reassignment and assign.op == "=":
            overwrite = True
        else:
            return

        inferred = self._infer_targets(len(assign.targets), assign.values)
        for target, (value_type, origin) in zip(assign.targets, inferred, strict=True):
            if isinstance(target, Ident) and value_type is not None:
                self.bind(target.name, value_type, origin, overwrite=overwrite)

    def register_range(self, loop: Range) -> None:
        if not loop.define or len(loop.targets) < 2:
            return
        value = loop.targets[1]
        if not isinstance(value, Ident):
            return

        collection = self.infer_type(loop.iterable)
        seen: set[str] = set()
        while isinstance(collection, Ident) and collection.name not in seen:
            seen.add(collection.name)
            collection = self.declared_type(collection.name) or self.catalog.named_types.get(collection.name)
        if isinstance(collection, Star):
            collection = collection.operand
        match collection:
            case ArrayType(element=element):
                self.bind(value.name, element)
            case MapType(value=element):
                self.bind(value.name, element)

    def _infer_targets(self, count: int, values: tuple[Expr, ...]) -> list[tuple[Expr | None, Expr | None]]:
        if len(values) == 1 and count > 1:
            value = values[0]
            results = self.call_results(value) if isinstance(value, Call) else ()
            inferred: list[tuple[Expr | None, Expr | None]] = []
            for index in range(count):
                if index < len(results):
                    inferred.append((results[index], value if index == 0 else None))
                elif index == 0:
                    inferred.append((self.infer_type(value), value))
                else:
                    inferred.append((None, None))
            return inferred

        return [
            (self.infer_type(values[index]), values[index]) if index < len(values) else (None, None)
            for index in range(count)
        ]

    def infer_type(self, expr: Expr) -> Expr | None:
        """Static type of ``expr``, or the expression itself for value-carrying leaves."""
        match expr:
            case CompositeLit(type=literal_type):
                return literal_type
            case Call():
                if expr_to_string(expr.func) in MARSHAL_CALLS:
                    return _BYTES
                results = self.call_results(expr)
                return results[0] if results else None
            case Unary(op="&", operand=operand):
                match operand:
                    case CompositeLit(type=literal_type):
                        return literal_type
                    case Ident(name=name):
                        return self.declared_type(name)
                return None
            case Ident() | Selector() | ArrayType() | MapType() | StructType() | InterfaceType() | Star() | BasicLit():
                return expr
        return None

    def call_results(self, call: Call) -> tuple[Expr, ...]:
        """Declared result types of ``call``, resolving the receiver of method calls."""
        match call.func:
            case Ident(name="new") if len(call.args) == 1:
                return (Star(call.args[0]),)
            case Ident(name=name):
                return self.catalog.lookup_result("", name)
            case Selector(operand=operand, name=name):
                receiver = expr_to_string(self.resolve_type_from_arg(operand))
                return self.catalog.lookup_result(receiver, name)
        return ()

    def lookup_function_result(self, receiver: str, name: str) -> tuple[Expr, ...]:
        return self.catalog.lookup_result(receiver, name)

    def resolve_type_from_arg(self, expr: Expr) -> Expr:
        """Type referred to by a call argument such as ``&req`` or ``req``."""
        match expr:
            case Unary(op="&", operand=Ident(name=name)):
                return self.declared_type(name) or expr
            case Unary(op="&", operand=CompositeLit(type=literal_type)) if literal_type is not None:
                return literal_type
            case Ident(name=name):
                return self.declared_type(name) or expr
            case Call():
                return self.infer_type(expr) or expr
            case CompositeLit(type=literal_type) if literal_type is not None:
                return literal_type
            case Selector(operand=operand, name=name):
                field_type = self._field_type(self.resolve_type_from_arg(operand), name)
                return field_type if field_type is not None else expr
        return expr

    def _field_type(self, owner: Expr, name: str) -> Expr | None:
        if isinstance(owner, Star):
            owner = owner.operand
        struct = owner if isinstance(owner, StructType) else None
        if isinstance(owner, Ident):
            struct = self.catalog.structs.get(owner.name)
        if struct is None:
            return None
        for field in struct.fields:
            if name in field.names:
                return field.type
        return None

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from bytedocs.core.source import ParsedPackage
from bytedocs.core.syntax import Expr, StructType


@dataclass(frozen=True)
class FunctionSignature:
    receiver: str
    results: tuple[Expr, ...]


@dataclass
class TypeCatalog:
    """Struct declarations, named types and function result signatures of one package.

    Signatures are keyed by bare name, by ``Receiver.Name`` and, for pointer
    receivers, by the pointer-stripped ``T.Name`` so both receiver forms
    resolve the same declaration.
    """

    structs: dict[str, StructType] = field(default_factory=dict)
    named_types: dict[str, Expr] = field(default_factory=dict)
    functions: dict[str, list[FunctionSignature]] = field(default_factory=lambda: defaultdict(list))

    @classmethod
    def from_package(cls, package: ParsedPackage) -> TypeCatalog:
        catalog = cls()
        for spec in package.types():
            if isinstance(spec.type, StructType):
                catalog.structs[spec.name] = spec.type
            else:
                catalog.named_types[spec.name] = spec.type

        for fn in package.functions():
            catalog.add_function(fn.name, fn.receiver_type, fn.results)
        return catalog

    def add_function(self, name: str, receiver: str, results: tuple[Expr, ...]) -> None:
        signature = FunctionSignature(receiver=receiver, results=results)
        self.functions[name].append(signature)
        if receiver:
            self.functions[f"{receiver}.{name}"].append(signature)
            trimmed = receiver.lstrip("*")
            if trimmed != receiver:
                self.functions[f"{trimmed}.{name}"].append(signature)

    def lookup_result(self, receiver: str, name: str) -> tuple[Expr, ...]:
        """Return the declared results of ``receiver.name``, falling back to ``name``."""
        keys = []
        if receiver:
            keys.append(f"{receiver}.{name}")
            keys.append(f"{receiver.lstrip('*')}.{name}")
        keys.append(name)
        for key in keys:
            signatures = self.functions.get(key)
            if signatures:
                return signatures[0].results
        return ()

"""Declarative framework capability descriptors and the shared handler predicate."""

from __future__ import annotations

from dataclasses import dataclass, field

from bytedocs.core.syntax import Expr, FuncDecl, expr_to_string


@dataclass(frozen=True)
class ContextStyle:
    """Handlers take a single framework request context, e.g. ``*gin.Context``."""

    context_types: frozenset[str]
    factory_results: frozenset[str] = frozenset()


@dataclass(frozen=True)
class WriterRequestStyle:
    """Handlers take a response sink plus a request pointer, e.g. ``(w, r)``."""

    sink_types: frozenset[str]
    request_types: frozenset[str]
    factory_results: frozenset[str] = frozenset()


HandlerShape = ContextStyle | WriterRequestStyle


@dataclass(frozen=True)
class BindingRule:
    """A call that decodes the request payload into its ``arg``-th argument.

    ``content_type`` of ``None`` means the media type is decided by the
    request, documented as JSON. ``via`` requires the call to be made on the
    result of a call with that name, as in ``json.NewDecoder(r.Body).Decode``.
    """

    content_type: str | None = None
    arg: int = 0
    via: str | None = None


@dataclass(frozen=True)
class ResponseRule:
    """How one response-emitting call spells its status, body and media type.

    ``status_arg`` of ``None`` implies 200 unless ``chain_status`` names a
    chained status call. ``body_arg`` of ``None`` means the call sends no
    content.
    """

    content_type: str | None = None
    status_arg: int | None = 0
    body_arg: int | None = 1
    min_args: int = 2
    content_type_arg: int | None = None
    via: str | None = None
    chain_status: str | None = None
    body_type: Expr | None = None


@dataclass(frozen=True)
class FrameworkCapabilities:
    name: str
    handler_shape: HandlerShape
    binding_calls: dict[str, BindingRule] = field(default_factory=dict)
    response_calls: dict[str, ResponseRule] = field(default_factory=dict)
    response_functions: dict[str, ResponseRule] = field(default_factory=dict)
    tracks_reassignment: bool = False


def is_handler(fn: FuncDecl, shape: HandlerShape) -> bool:
    """Whether ``fn`` looks like a request handler (or returns one) for ``shape``."""
    param_types = {expr_to_string(param.type) for param in fn.params}
    match shape:
        case ContextStyle(context_types=context_types):
            matched = bool(param_types & context_types)
        case WriterRequestStyle(sink_types=sink_types, request_types=request_types):
            matched = bool(param_types & sink_types) and bool(param_types & request_types)
    if matched:
        return True
    return any(expr_to_string(result) in shape.factory_results for result in fn.results)

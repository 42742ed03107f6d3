"""Shared request-binding and response detection driven by capability tables."""

from __future__ import annotations

from dataclasses import dataclass

from bytedocs.core.capabilities import BindingRule, FrameworkCapabilities, ResponseRule
from bytedocs.core.resolver import ExpressionTypeResolver, marshal_argument
from bytedocs.core.schema import SchemaBuilder, default_example, normalize_example
from bytedocs.core.status import status_code_for_name, status_text
from bytedocs.core.syntax import BasicLit, Call, CompositeLit, Expr, Ident, Selector, Star, Unary, expr_to_string
from bytedocs.models import RequestBody, Response

DEFAULT_CONTENT_TYPE = "application/json"
DEFAULT_STATUS = "200"
NO_CONTENT = BasicLit("string", "")

_MIME_CONSTANTS = {
    "MIMEApplicationJSON": "application/json",
    "MIMEApplicationJSONCharsetUTF8": "application/json; charset=UTF-8",
    "MIMEJSON": "application/json",
    "MIMEApplicationXML": "application/xml",
    "MIMEApplicationXMLCharsetUTF8": "application/xml; charset=UTF-8",
    "MIMEXML": "application/xml",
    "MIMETextXML": "text/xml",
    "MIMETextHTML": "text/html",
    "MIMETextHTMLCharsetUTF8": "text/html; charset=UTF-8",
    "MIMEHTML": "text/html",
    "MIMETextPlain": "text/plain",
    "MIMETextPlainCharsetUTF8": "text/plain; charset=UTF-8",
    "MIMEPlain": "text/plain",
    "MIMEOctetStream": "application/octet-stream",
    "MIMEApplicationProtobuf": "application/protobuf",
    "MIMEPROTOBUF": "application/x-protobuf",
    "MIMEYAML": "application/x-yaml",
}


@dataclass(frozen=True)
class ResponseCall:
    rule: ResponseRule
    content_type: str
    status: Expr | None
    payload: Expr


def _called_name(expr: Expr) -> str:
    match expr:
        case Call(func=Selector(name=name)) | Call(func=Ident(name=name)):
            return name
    return ""


def match_binding(call: Call, capabilities: FrameworkCapabilities) -> tuple[BindingRule, Expr] | None:
    if not isinstance(call.func, Selector):
        return None
    rule = capabilities.binding_calls.get(call.func.name)
    if rule is None or len(call.args) <= rule.arg:
        return None
    if rule.via is not None and _called_name(call.func.operand) != rule.via:
        return None
    return rule, call.args[rule.arg]


def resolve_request_body(call: Call, capabilities: FrameworkCapabilities, builder: SchemaBuilder) -> RequestBody | None:
    """Request body bound by ``call``, or ``None`` when it is not a binding call."""
    matched = match_binding(call, capabilities)
    if matched is None:
        return None
    rule, target = matched

    type_expr = builder.resolver.resolve_type_from_arg(target)
    schema, example = builder.build(type_expr)
    if schema is None:
        return None
    example = normalize_example(schema, example)
    if example is None:
        example = default_example(schema)
    return RequestBody(
        content_type=rule.content_type or DEFAULT_CONTENT_TYPE,
        schema=schema,
        example=example,
        required=True,
    )


def match_response_call(call: Call, capabilities: FrameworkCapabilities, resolver: ExpressionTypeResolver) -> ResponseCall | None:
    match call.func:
        case Ident(name=name):
            rule = capabilities.response_functions.get(name)
        case Selector(name=name):
            rule = capabilities.response_calls.get(name)
        case _:
            return None
    if rule is None or len(call.args) < rule.min_args:
        return None

    operand = call.func.operand if isinstance(call.func, Selector) else None
    if rule.via is not None and (operand is None or _called_name(operand) != rule.via):
        return None

    status = call.args[rule.status_arg] if rule.status_arg is not None else None
    if status is None and rule.chain_status is not None and isinstance(operand, Call):
        if _called_name(operand) == rule.chain_status and operand.args:
            status = operand.args[0]

    content_type = rule.content_type or ""
    if rule.content_type_arg is not None:
        content_type = resolve_content_type(call.args[rule.content_type_arg], resolver) or content_type

    if rule.body_type is not None:
        payload = rule.body_type
    elif rule.body_arg is not None:
        payload = call.args[rule.body_arg]
    else:
        payload = NO_CONTENT
    return ResponseCall(rule=rule, content_type=content_type, status=status, payload=payload)


def resolve_status_code(expr: Expr | None, resolver: ExpressionTypeResolver, _seen: frozenset[str] = frozenset()) -> str | None:
    match expr:
        case BasicLit(kind="int", value=int(value)):
            return str(value)
        case Selector(name=name):
            code = status_code_for_name(name)
            return str(code) if code is not None else None
        case Ident(name=name) if name not in _seen:
            declared = resolver.declared_type(name)
            if declared is not None:
                return resolve_status_code(declared, resolver, _seen | {name})
    return None


def resolve_content_type(expr: Expr, resolver: ExpressionTypeResolver, _seen: frozenset[str] = frozenset()) -> str:
    match expr:
        case BasicLit(kind="string", value=str(value)):
            return value
        case Ident(name=name) if name not in _seen:
            binding = resolver.binding(name)
            if binding is None:
                return ""
            for candidate in (binding.origin, binding.declared_type):
                if candidate is not None:
                    resolved = resolve_content_type(candidate, resolver, _seen | {name})
                    if resolved:
                        return resolved
        case Call(args=args) if args:
            return resolve_content_type(args[0], resolver, _seen)
        case Star(operand=operand):
            return resolve_content_type(operand, resolver, _seen)
        case Selector(name=name):
            return _MIME_CONSTANTS.get(name, expr_to_string(expr))
    return ""


def resolve_payload(expr: Expr, resolver: ExpressionTypeResolver, _seen: frozenset[str] = frozenset()) -> Expr:
    """Follow address-of, marshalling and call results down to a buildable expression."""
    match expr:
        case Unary(op="&", operand=operand):
            return resolve_payload(operand, resolver, _seen)
        case CompositeLit():
            return expr
        case Ident(name=name) if name not in _seen:
            binding = resolver.binding(name)
            if binding is None:
                return expr
            origin = binding.origin
            if origin is not None:
                marshalled = marshal_argument(origin)
                if marshalled is not None:
                    return resolve_payload(marshalled, resolver, _seen | {name})
                if isinstance(origin, CompositeLit):
                    return origin
            return binding.declared_type
        case Call():
            marshalled = marshal_argument(expr)
            if marshalled is not None:
                return resolve_payload(marshalled, resolver, _seen)
            results = resolver.call_results(expr)
            if results:
                return results[0]
    return expr


def build_response(matched: ResponseCall, builder: SchemaBuilder) -> tuple[str, Response]:
    """Resolve status, payload and media type of one response call."""
    status = resolve_status_code(matched.status, builder.resolver) if matched.status is not None else None
    status = status or DEFAULT_STATUS

    payload = resolve_payload(matched.payload, builder.resolver)
    schema, example = builder.build(payload)
    example = normalize_example(schema, example)
    if example is None:
        example = default_example(schema)

    response = Response(
        description=status_text(status) or "Response",
        schema=schema,
        example=example,
        content_type=matched.content_type or DEFAULT_CONTENT_TYPE,
    )
    return status, response

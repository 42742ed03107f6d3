from bytedocs.core.capabilities import (
    BindingRule,
    ContextStyle,
    FrameworkCapabilities,
    ResponseRule,
    WriterRequestStyle,
)
from bytedocs.core.syntax import CompositeLit, Ident
from bytedocs.errors import UnsupportedFrameworkError

JSON = "application/json"
XML = "application/xml"
YAML = "application/x-yaml"
TEXT = "text/plain"
HTML = "text/html"
OCTET_STREAM = "application/octet-stream"
PROTOBUF = "application/protobuf"

_GIN_PROTOBUF = BindingRule(PROTOBUF)

GIN = FrameworkCapabilities(
    name="gin",
    handler_shape=ContextStyle(
        context_types=frozenset({"*gin.Context", "gin.Context"}),
        factory_results=frozenset({"gin.HandlerFunc"}),
    ),
    binding_calls={
        "Bind": BindingRule(),
        "MustBind": BindingRule(),
        "ShouldBind": BindingRule(),
        "MustBindWith": BindingRule(),
        "BindWith": BindingRule(),
        "ShouldBindWith": BindingRule(),
        "BindBodyWith": BindingRule(),
        "ShouldBindBodyWith": BindingRule(),
        "BindJSON": BindingRule(JSON),
        "ShouldBindJSON": BindingRule(JSON),
        "BindXML": BindingRule(XML),
        "ShouldBindXML": BindingRule(XML),
        "BindYAML": BindingRule(YAML),
        "ShouldBindYAML": BindingRule(YAML),
        "BindProto": _GIN_PROTOBUF,
        "BindProtobuf": _GIN_PROTOBUF,
        "BindProtoBuf": _GIN_PROTOBUF,
        "ShouldBindProto": _GIN_PROTOBUF,
        "ShouldBindProtoBuf": _GIN_PROTOBUF,
    },
    response_calls={
        "JSON": ResponseRule(JSON),
        "IndentedJSON": ResponseRule(JSON),
        "PureJSON": ResponseRule(JSON),
        "SecureJSON": ResponseRule(JSON),
        "AsciiJSON": ResponseRule(JSON),
        "AbortWithStatusJSON": ResponseRule(JSON),
        "AbortWithStatus": ResponseRule(status_arg=0, body_arg=None, min_args=1),
        "Data": ResponseRule(OCTET_STREAM, body_arg=2, min_args=3, content_type_arg=1),
        "String": ResponseRule(TEXT),
        "XML": ResponseRule(XML),
        "IndentedXML": ResponseRule(XML),
        "YAML": ResponseRule(YAML),
        "ProtoBuf": ResponseRule("application/x-protobuf"),
        "JSONP": ResponseRule("application/javascript"),
    },
)

ECHO = FrameworkCapabilities(
    name="echo",
    handler_shape=ContextStyle(
        context_types=frozenset({"echo.Context", "Context"}),
        factory_results=frozenset({"echo.HandlerFunc"}),
    ),
    binding_calls={"Bind": BindingRule()},
    response_calls={
        "JSON": ResponseRule(JSON),
        "JSONPretty": ResponseRule(JSON),
        "String": ResponseRule(TEXT),
        "XML": ResponseRule(XML),
        "XMLPretty": ResponseRule(XML),
        "HTML": ResponseRule(HTML),
        "HTMLBlob": ResponseRule(HTML),
        "Blob": ResponseRule(OCTET_STREAM, body_arg=2, min_args=3, content_type_arg=1),
        "Stream": ResponseRule(OCTET_STREAM, body_arg=2, min_args=3, content_type_arg=1),
        "File": ResponseRule(OCTET_STREAM, status_arg=None, body_arg=0, min_args=1),
        "Attachment": ResponseRule(OCTET_STREAM, status_arg=None, body_arg=0, min_args=2),
        "Inline": ResponseRule(OCTET_STREAM, status_arg=None, body_arg=0, min_args=2),
        "NoContent": ResponseRule(status_arg=0, body_arg=None, min_args=1),
        "Redirect": ResponseRule(HTML),
    },
)

FIBER = FrameworkCapabilities(
    name="fiber",
    handler_shape=ContextStyle(
        context_types=frozenset({"*fiber.Ctx", "fiber.Ctx", "Ctx", "*Ctx"}),
        factory_results=frozenset({"fiber.Handler"}),
    ),
    binding_calls={"BodyParser": BindingRule()},
    response_calls={
        "JSON": ResponseRule(JSON, status_arg=None, body_arg=0, min_args=1, chain_status="Status"),
        "String": ResponseRule(TEXT, status_arg=None, body_arg=0, min_args=1, chain_status="Status"),
        "SendString": ResponseRule(TEXT, status_arg=None, body_arg=0, min_args=1, chain_status="Status"),
        "XML": ResponseRule(XML, status_arg=None, body_arg=0, min_args=1, chain_status="Status"),
        "SendFile": ResponseRule(OCTET_STREAM, status_arg=None, body_arg=0, min_args=1),
        "SendStatus": ResponseRule(status_arg=0, body_arg=None, min_args=1),
    },
)

_WRITER_STYLE = WriterRequestStyle(
    sink_types=frozenset({"http.ResponseWriter", "ResponseWriter"}),
    request_types=frozenset({"*http.Request", "*Request"}),
    factory_results=frozenset({"http.HandlerFunc", "http.Handler"}),
)

_WRITE_JSON_HELPER = ResponseRule(JSON, status_arg=1, body_arg=2, min_args=3)
_ENCODE = ResponseRule(JSON, status_arg=None, body_arg=0, min_args=1, via="NewEncoder")
_WRITE_HEADER = ResponseRule(status_arg=0, body_arg=None, min_args=1)
_HTTP_ERROR = ResponseRule(TEXT, status_arg=2, body_arg=1, min_args=3)

GORILLA_MUX = FrameworkCapabilities(
    name="gorilla-mux",
    handler_shape=_WRITER_STYLE,
    binding_calls={"Decode": BindingRule(JSON)},
    response_calls={
        "Encode": _ENCODE,
        "WriteHeader": _WRITE_HEADER,
        "Write": ResponseRule(TEXT, status_arg=None, body_arg=0, min_args=1),
        "Error": _HTTP_ERROR,
    },
    response_functions={"writeJSON": _WRITE_JSON_HELPER},
)

NET_HTTP = FrameworkCapabilities(
    name="net/http",
    handler_shape=_WRITER_STYLE,
    binding_calls={"Decode": BindingRule(JSON, via="NewDecoder")},
    response_calls={
        "Encode": _ENCODE,
        "WriteHeader": _WRITE_HEADER,
        "JSON": ResponseRule(JSON),
        "Error": _HTTP_ERROR,
    },
    response_functions={
        "writeJSON": _WRITE_JSON_HELPER,
        "writeError": ResponseRule(JSON, status_arg=1, min_args=4, body_type=CompositeLit(Ident("ErrorResponse"))),
    },
    tracks_reassignment=True,
)

_FRAMEWORKS = {caps.name: caps for caps in (GIN, ECHO, FIBER, GORILLA_MUX, NET_HTTP)}

_FRAMEWORK_ALIASES = {
    "gin": "gin",
    "gin-gonic": "gin",
    "echo": "echo",
    "labstack-echo": "echo",
    "fiber": "fiber",
    "gofiber": "fiber",
    "gorilla": "gorilla-mux",
    "gorilla-mux": "gorilla-mux",
    "gorilla/mux": "gorilla-mux",
    "mux": "gorilla-mux",
    "net/http": "net/http",
    "nethttp": "net/http",
    "net-http": "net/http",
    "http": "net/http",
    "stdlib": "net/http",
}


def normalize_framework(framework: str) -> str:
    normalized = framework.strip().lower()
    resolved = _FRAMEWORK_ALIASES.get(normalized, normalized)
    if resolved not in _FRAMEWORKS:
        raise UnsupportedFrameworkError(
            f"Unsupported framework '{framework}'. Supported: {sorted(_FRAMEWORKS)}"
        )
    return resolved


def get_framework(framework: str) -> FrameworkCapabilities:
    return _FRAMEWORKS[normalize_framework(framework)]


def supported_frameworks() -> list[str]:
    return sorted(_FRAMEWORKS)

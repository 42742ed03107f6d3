"""Explicit route registry and its OpenAPI 3.0.3 projection."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bytedocs.config import DocsConfig
from bytedocs.core.capabilities import FrameworkCapabilities
from bytedocs.core.frameworks import get_framework
from bytedocs.core.store import HandlerMetadataStore
from bytedocs.models import HandlerMetadata, Parameter, RequestBody, Response

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.3"

_PATTERN_PARAM = re.compile(r"\{([^{}:]+):[^{}]+\}")

_INTEGER_TYPES = {"int", "int8", "int16", "int32", "int64", "uint", "uint8", "uint16", "uint32", "uint64"}
_OPENAPI_TYPES = {
    **{name: "integer" for name in _INTEGER_TYPES},
    "integer": "integer",
    "float32": "number",
    "float64": "number",
    "number": "number",
    "bool": "boolean",
    "boolean": "boolean",
    "string": "string",
    "": "string",
    "array": "array",
    "slice": "array",
    "[]string": "array",
    "[]int": "array",
    "object": "object",
    "map": "object",
    "interface{}": "object",
}

_ACTIONS = {"POST": "Create", "PUT": "Update", "PATCH": "Update", "DELETE": "Delete"}


def convert_path_to_openapi(path: str) -> str:
    """Rewrite ``:name``, ``<name>`` and ``{name:pattern}`` placeholders as ``{name}``."""
    if not path.startswith("/"):
        path = "/" + path
    parts = ["{" + part[1:] + "}" if part.startswith(":") else part for part in path.split("/")]
    result = "/".join(parts).replace("<", "{").replace(">", "}")
    result = _PATTERN_PARAM.sub(r"{\1}", result)
    return result.replace("{}/", "/")


def extract_path_params(path: str) -> list[str]:
    params = []
    for part in path.split("/"):
        if part.startswith(":"):
            params.append(part[1:])
        elif (part.startswith("{") and part.endswith("}")) or (part.startswith("<") and part.endswith(">")):
            params.append(part[1:-1].split(":", 1)[0])
    return params


def normalize_openapi_type(go_type: str) -> str:
    return _OPENAPI_TYPES.get(go_type.lower(), "string")


def _is_placeholder(segment: str) -> bool:
    return segment.startswith(":") or "{" in segment or "<" in segment


def extract_section(path: str) -> str:
    """Last static path segment that is neither ``api`` nor a version prefix."""
    parts = path.strip("/").split("/")
    for part in reversed(parts):
        if part and not _is_placeholder(part) and part != "api" and not part.startswith("v"):
            return part
    return parts[0] if parts[0] else "default"


def format_section_name(section: str) -> str:
    return section.title()


def infer_action(method: str, path: str) -> str:
    method = method.upper()
    if method == "GET":
        return "Get" if ":" in path or "{" in path else "List"
    return _ACTIONS.get(method, method)


def generate_summary(method: str, path: str) -> str:
    return f"{infer_action(method, path)} {extract_section(path)}"


def generate_id(method: str, path: str) -> str:
    return f"{method.lower()}-{path.replace('/', '-').replace(':', '')}"


def default_responses() -> dict[str, Response]:
    return {
        "200": Response(description="Success", example={"status": "success"}),
        "400": Response(description="Bad Request"),
        "404": Response(description="Not Found"),
        "500": Response(description="Internal Server Error"),
    }


@dataclass(frozen=True)
class RouteRegistration:
    method: str
    path: str
    handler: str
    directory: str
    file_path: str | None = None
    receiver: str | None = None
    line: int | None = None
    summary: str = ""
    description: str = ""


@dataclass(frozen=True)
class Endpoint:
    id: str
    method: str
    path: str
    section: str
    summary: str
    description: str
    parameters: list[Parameter]
    request_body: RequestBody | None
    responses: dict[str, Response]


def merge_parameters(path_params: list[Parameter], annotated: list[Parameter]) -> list[Parameter]:
    """Path parameters first; annotations with the same name and location replace them."""
    merged: dict[tuple[str, str], Parameter] = {}
    for param in [*path_params, *annotated]:
        merged[(param.name, param.in_)] = param
    return list(merged.values())


class DocsEngine:
    """Collects routes registered by the host and projects them to OpenAPI.

    Handler documentation comes from static analysis of the Go package each
    route's handler lives in, through a shared :class:`HandlerMetadataStore`.
    """

    def __init__(
        self,
        config: DocsConfig | None = None,
        framework: str | FrameworkCapabilities | None = None,
        store: HandlerMetadataStore | None = None,
    ) -> None:
        self.config = config or DocsConfig()
        if store is not None:
            self.capabilities = store.capabilities
        elif isinstance(framework, FrameworkCapabilities):
            self.capabilities = framework
        else:
            self.capabilities = get_framework(framework or self.config.framework)
        self.store = store or HandlerMetadataStore(self.capabilities)
        self.routes: list[RouteRegistration] = []

    def add_route(
        self,
        method: str,
        path: str,
        handler: str,
        directory: str | Path | None = None,
        *,
        file_path: str | Path | None = None,
        receiver: str | None = None,
        line: int | None = None,
        summary: str = "",
        description: str = "",
    ) -> RouteRegistration:
        route = RouteRegistration(
            method=method.upper(),
            path=path,
            handler=handler,
            directory=str(directory if directory is not None else self.config.source_dir),
            file_path=str(file_path) if file_path is not None else None,
            receiver=receiver,
            line=line,
            summary=summary,
            description=description,
        )
        self.routes.append(route)
        return route

    def metadata_for(self, route: RouteRegistration) -> HandlerMetadata:
        return self.store.lookup(
            route.handler,
            route.directory,
            file_path=route.file_path,
            receiver=route.receiver,
            line=route.line,
        )

    def endpoint(self, route: RouteRegistration) -> Endpoint:
        display_path = convert_path_to_openapi(route.path)
        metadata = self.metadata_for(route)

        summary = route.summary or metadata.info.summary or generate_summary(route.method, display_path)
        description = route.description or metadata.info.description or summary
        path_params = [
            Parameter(name=name, in_="path", type="string", required=True)
            for name in extract_path_params(route.path)
        ]
        return Endpoint(
            id=generate_id(route.method, display_path),
            method=route.method,
            path=display_path,
            section=extract_section(display_path),
            summary=summary,
            description=description,
            parameters=merge_parameters(path_params, metadata.info.parameters),
            request_body=metadata.request_body,
            responses=metadata.responses or default_responses(),
        )

    def endpoints(self) -> list[Endpoint]:
        endpoints = []
        for route in self.routes:
            if self.config.is_excluded(route.path):
                logger.debug("Excluding %s %s from documentation", route.method, route.path)
                continue
            endpoints.append(self.endpoint(route))
        return endpoints

    def servers(self) -> list[dict[str, str]]:
        if self.config.base_urls:
            return [{"url": option.url, "description": option.name} for option in self.config.base_urls]
        if self.config.base_url:
            return [{"url": self.config.base_url}]
        return []

    def openapi(self) -> dict[str, Any]:
        paths: dict[str, dict[str, Any]] = {}
        for endpoint in self.endpoints():
            paths.setdefault(endpoint.path, {})[endpoint.method.lower()] = _operation(endpoint)

        return {
            "openapi": OPENAPI_VERSION,
            "info": {
                "title": self.config.title,
                "version": self.config.version,
                "description": self.config.description,
            },
            "servers": self.servers(),
            "paths": paths,
            "components": {"schemas": {}},
        }


def _operation(endpoint: Endpoint) -> dict[str, Any]:
    operation: dict[str, Any] = {
        "summary": endpoint.summary,
        "description": endpoint.description,
        "tags": [format_section_name(endpoint.section)],
        "operationId": endpoint.id,
        "parameters": [
            {
                "name": param.name,
                "in": param.in_,
                "required": param.required,
                "description": param.description,
                "schema": {"type": normalize_openapi_type(param.type)},
                "example": param.example,
            }
            for param in endpoint.parameters
        ],
        "responses": {
            status: {
                "description": response.description,
                "content": {
                    response.content_type or "application/json": {
                        "schema": response.schema_,
                        "example": response.example,
                    }
                },
            }
            for status, response in endpoint.responses.items()
        },
    }
    body = endpoint.request_body
    if body is not None:
        operation["requestBody"] = {
            "required": body.required,
            "content": {
                body.content_type or "application/json": {
                    "schema": body.schema_,
                    "example": body.example,
                }
            },
        }
    return operation

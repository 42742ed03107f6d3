from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from bytedocs.core.capabilities import FrameworkCapabilities, is_handler
from bytedocs.core.catalog import TypeCatalog
from bytedocs.core.comments import parse_handler_info
from bytedocs.core.detectors import build_response, match_response_call, resolve_request_body
from bytedocs.core.resolver import ExpressionTypeResolver
from bytedocs.core.schema import SchemaBuilder
from bytedocs.core.source import ParsedPackage, load_package
from bytedocs.core.syntax import Call, FuncDecl, walk
from bytedocs.models import HandlerMetadata, RequestBody, Response

logger = logging.getLogger(__name__)


@dataclass
class HandlerAnalysis:
    request_body: RequestBody | None = None
    responses: dict[str, Response] = field(default_factory=dict)


@dataclass(frozen=True)
class HandlerRecord:
    file_path: str
    function_name: str
    receiver_type: str
    start_line: int
    metadata: HandlerMetadata


@dataclass(frozen=True)
class PackageAnalysis:
    directory: str
    handlers: dict[str, list[HandlerRecord]]
    catalog: TypeCatalog

    def candidates(self, function_name: str) -> list[HandlerRecord]:
        return self.handlers.get(function_name.lower(), [])

    def records(self) -> list[HandlerRecord]:
        return [record for records in self.handlers.values() for record in records]


def analyze_handler(fn: FuncDecl, catalog: TypeCatalog, capabilities: FrameworkCapabilities) -> HandlerAnalysis:
    """Detect the request body and responses of one handler body.

    The body is walked once in source order; the first binding call wins
    and later responses overwrite earlier ones with the same status.
    """
    analysis = HandlerAnalysis()
    if fn.body is None:
        return analysis

    resolver = ExpressionTypeResolver(catalog, track_reassignment=capabilities.tracks_reassignment)
    resolver.bind_function(fn)
    builder = SchemaBuilder(resolver)

    for node in walk(fn.body):
        resolver.register(node)
        if not isinstance(node, Call):
            continue

        if analysis.request_body is None:
            analysis.request_body = resolve_request_body(node, capabilities, builder)

        matched = match_response_call(node, capabilities, resolver)
        if matched is None:
            continue
        status, response = build_response(matched, builder)
        analysis.responses[status] = response

    return analysis


def analyze_package(package: ParsedPackage, capabilities: FrameworkCapabilities) -> PackageAnalysis:
    catalog = TypeCatalog.from_package(package)
    handlers: dict[str, list[HandlerRecord]] = defaultdict(list)

    for fn in package.functions():
        if not is_handler(fn, capabilities.handler_shape):
            continue
        try:
            details = analyze_handler(fn, catalog, capabilities)
        except RecursionError:
            logger.warning("Skipping body of %s in %s: expressions nested too deeply", fn.name, fn.file_path)
            details = HandlerAnalysis()

        metadata = HandlerMetadata(
            info=parse_handler_info(fn.doc),
            request_body=details.request_body,
            responses=details.responses,
        )
        handlers[fn.name.lower()].append(
            HandlerRecord(
                file_path=fn.file_path,
                function_name=fn.name,
                receiver_type=fn.receiver_type,
                start_line=fn.line,
                metadata=metadata,
            )
        )

    logger.info(
        "Analysed %d %s handlers in %s",
        sum(len(records) for records in handlers.values()),
        capabilities.name,
        package.directory,
    )
    return PackageAnalysis(directory=package.directory, handlers=dict(handlers), catalog=catalog)


def analyze_directory(directory: str | Path, capabilities: FrameworkCapabilities) -> PackageAnalysis:
    return analyze_package(load_package(directory), capabilities)

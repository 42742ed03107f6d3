from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from bytedocs.cli._common import FrameworkOption, console, fail, resolve_framework
from bytedocs.config import load_config_from_env
from bytedocs.core.store import HandlerMetadataStore


def handlers(
    directory: Annotated[Path, typer.Argument(help="Go package directory to analyse.")],
    framework: FrameworkOption = None,
) -> None:
    """List the request handlers found in a Go package."""
    capabilities = resolve_framework(framework, load_config_from_env())
    analysis = HandlerMetadataStore(capabilities).load(directory)
    if analysis is None:
        raise fail(f"Could not analyse {directory}.")

    records = sorted(analysis.records(), key=lambda r: (r.file_path, r.start_line))
    table = Table(show_lines=False)
    for header in ("handler", "receiver", "file", "line", "request", "responses"):
        table.add_column(header)
    for record in records:
        metadata = record.metadata
        table.add_row(
            record.function_name,
            record.receiver_type,
            Path(record.file_path).name,
            str(record.start_line),
            metadata.request_body.content_type if metadata.request_body else "",
            ", ".join(sorted(metadata.responses)),
        )
    console.print(table)
    console.print(f"({len(records)} handlers, {capabilities.name})")


def show(
    name: Annotated[str, typer.Argument(help="Handler function name (case-insensitive).")],
    directory: Annotated[Path, typer.Argument(help="Go package directory to analyse.")],
    framework: FrameworkOption = None,
    file: Annotated[Path | None, typer.Option(help="Source file declaring the handler.")] = None,
    receiver: Annotated[str | None, typer.Option(help='Receiver type, "" for free functions.')] = None,
    line: Annotated[int | None, typer.Option(help="Declaration line of the handler.")] = None,
) -> None:
    """Print the derived documentation for one handler as JSON."""
    capabilities = resolve_framework(framework, load_config_from_env())
    store = HandlerMetadataStore(capabilities)
    metadata = store.lookup(name, directory, file_path=file, receiver=receiver, line=line)
    if metadata.is_empty():
        raise fail(f"No documentation found for handler '{name}' in {directory}.")
    console.print_json(json.dumps(metadata.model_dump(by_alias=True)))

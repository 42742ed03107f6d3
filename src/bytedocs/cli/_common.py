from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from bytedocs.config import DocsConfig, load_config_from_env
from bytedocs.core.capabilities import FrameworkCapabilities
from bytedocs.core.frameworks import get_framework, supported_frameworks
from bytedocs.core.openapi import DocsEngine
from bytedocs.errors import BytedocsError

console = Console()

FrameworkOption = Annotated[
    str | None,
    typer.Option("--framework", "-f", help=f"Web framework ({', '.join(supported_frameworks())})."),
]
RouteOption = Annotated[
    list[str] | None,
    typer.Option("--route", "-r", help='Route to document as "METHOD PATH HANDLER", repeatable.'),
]


def fail(message: str) -> typer.Exit:
    console.print(f"[red]{escape(message)}[/red]")
    return typer.Exit(1)


def resolve_framework(framework: str | None, config: DocsConfig) -> FrameworkCapabilities:
    try:
        return get_framework(framework or config.framework)
    except BytedocsError as exc:
        raise fail(str(exc)) from exc


def build_engine(directory: str | None, framework: str | None, routes: list[str] | None) -> DocsEngine:
    config = load_config_from_env()
    if directory is not None:
        config = config.model_copy(update={"source_dir": directory})
    engine = DocsEngine(config, resolve_framework(framework, config))
    for route in routes or []:
        parts = route.split()
        if len(parts) != 3:
            raise fail(f'Invalid route "{route}", expected "METHOD PATH HANDLER".')
        method, path, handler = parts
        engine.add_route(method, path, handler)
    return engine

from __future__ import annotations

import json
import logging
from typing import Annotated

import typer

from bytedocs.cli._common import FrameworkOption, RouteOption, build_engine, console

logger = logging.getLogger(__name__)


def openapi(
    directory: Annotated[str | None, typer.Argument(help="Go package directory holding the handlers.")] = None,
    framework: FrameworkOption = None,
    route: RouteOption = None,
) -> None:
    """Print the OpenAPI document for the given routes."""
    engine = build_engine(directory, framework, route)
    console.print_json(json.dumps(engine.openapi()))


def serve(
    directory: Annotated[str | None, typer.Argument(help="Go package directory holding the handlers.")] = None,
    framework: FrameworkOption = None,
    route: RouteOption = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Start the documentation API server."""
    import uvicorn

    from bytedocs.api.app import create_app

    engine = build_engine(directory, framework, route)
    app = create_app(engine)
    logger.info("Serving %d routes from %s", len(engine.routes), engine.config.source_dir)
    console.print(f"[green]Starting API server on {host}:{port}[/green]")
    console.print(f"OpenAPI document at http://{host}:{port}{engine.config.openapi_path}")
    uvicorn.run(app, host=host, port=port)

from __future__ import annotations

from fastapi import FastAPI

from bytedocs.api.routes.handlers import router as handlers_router
from bytedocs.api.routes.health import router as health_router
from bytedocs.api.routes.openapi import router as openapi_router
from bytedocs.core.openapi import DocsEngine


def create_app(engine: DocsEngine) -> FastAPI:
    # The engine's document replaces FastAPI's own schema at /openapi.json.
    app = FastAPI(
        title=engine.config.title,
        description=engine.config.description,
        version=engine.config.version,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.engine = engine

    app.include_router(health_router, include_in_schema=False)
    app.include_router(openapi_router)
    if engine.config.docs_path != "/":
        app.include_router(openapi_router, prefix=engine.config.docs_path, include_in_schema=False)
    app.include_router(handlers_router)

    return app

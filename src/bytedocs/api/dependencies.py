from __future__ import annotations

from fastapi import Request

from bytedocs.core.openapi import DocsEngine


def get_engine(request: Request) -> DocsEngine:
    """The ``DocsEngine`` the application was created with."""
    return request.app.state.engine

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from bytedocs.api.dependencies import get_engine
from bytedocs.core.openapi import DocsEngine

router = APIRouter(tags=["openapi"])


@router.get("/openapi.json")
def openapi_document(engine: DocsEngine = Depends(get_engine)) -> dict[str, Any]:
    """OpenAPI 3.0.3 document for every registered route."""
    return engine.openapi()

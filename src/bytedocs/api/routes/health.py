from fastapi import APIRouter, Depends

from bytedocs.api.dependencies import get_engine
from bytedocs.api.schemas import HealthResponse
from bytedocs.core.openapi import DocsEngine

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(engine: DocsEngine = Depends(get_engine)) -> HealthResponse:
    return HealthResponse(framework=engine.capabilities.name)

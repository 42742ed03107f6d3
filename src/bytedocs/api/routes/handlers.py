from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from bytedocs.api.dependencies import get_engine
from bytedocs.api.schemas import HandlerSummary
from bytedocs.core.openapi import DocsEngine

router = APIRouter(prefix="/handlers", tags=["handlers"])


@router.get("", response_model=list[HandlerSummary])
def list_handlers(
    directory: str | None = None,
    engine: DocsEngine = Depends(get_engine),
) -> list[HandlerSummary]:
    """Handlers discovered in ``directory`` (defaults to the configured source dir)."""
    analysis = engine.store.load(directory or engine.config.source_dir)
    if analysis is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Source directory unavailable")
    return [
        HandlerSummary(
            function_name=record.function_name,
            receiver_type=record.receiver_type,
            file_path=record.file_path,
            start_line=record.start_line,
            summary=record.metadata.info.summary,
        )
        for record in sorted(analysis.records(), key=lambda r: (r.file_path, r.start_line))
    ]


@router.get("/{name}")
def handler_metadata(
    name: str,
    directory: str | None = None,
    file: str | None = None,
    receiver: str | None = None,
    line: int | None = None,
    engine: DocsEngine = Depends(get_engine),
) -> dict[str, Any]:
    metadata = engine.store.lookup(
        name,
        directory or engine.config.source_dir,
        file_path=file,
        receiver=receiver,
        line=line,
    )
    if metadata.is_empty():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No documentation for handler '{name}'")
    return metadata.model_dump(by_alias=True)

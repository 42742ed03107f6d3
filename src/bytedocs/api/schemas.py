from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    framework: str


class HandlerSummary(BaseModel):
    function_name: str
    receiver_type: str
    file_path: str
    start_line: int
    summary: str = ""

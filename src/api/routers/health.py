"""Health check: liveness only, no upstream probe."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_sec: int


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    from src.api.app import VERSION

    uptime = time.monotonic() - request.app.state.started_at
    return HealthResponse(status="ok", version=VERSION, uptime_sec=int(uptime))

"""FastAPI application factory for the operation transport."""

from __future__ import annotations

import os
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from src.parsers.errors import AccountNotFoundError, ComputationError, ScreenerError, ValidationError
from src.parsers.upstream.exceptions import UpstreamError, UpstreamTimeoutError
from src.tools.registry import ToolContext

VERSION = "0.1.0"


def _status_for(exc: ScreenerError) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, AccountNotFoundError):
        return 404
    if isinstance(exc, ComputationError):
        return 409
    if isinstance(exc, UpstreamTimeoutError):
        return 504
    if isinstance(exc, UpstreamError):
        return 502
    return 500


def create_app(context: ToolContext) -> FastAPI:
    """Build the app around an already-constructed tool context."""
    app = FastAPI(
        title="Mint Risk Radar",
        version=VERSION,
        docs_url="/api/docs" if os.getenv("API_DEBUG") else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if os.getenv("API_DEBUG") else None,
    )
    app.state.tool_context = context
    app.state.started_at = time.monotonic()

    @app.exception_handler(ScreenerError)
    async def _screener_error(_request: Request, exc: ScreenerError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.warning(f"[API] {type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    from src.api.routers.health import router as health_router
    from src.api.routers.tools import router as tools_router

    app.include_router(health_router)
    app.include_router(tools_router)

    return app

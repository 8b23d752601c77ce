"""API server: runs uvicorn inside the existing asyncio event loop."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import Settings
from src.tools.registry import ToolContext


async def run_api_server(context: ToolContext, cfg: Settings) -> None:
    """Serve the operation API until cancelled.

    Uses ``uvicorn.Server.serve()`` which is fully async.
    """
    from src.api.app import create_app

    app = create_app(context)
    config = uvicorn.Config(
        app=app,
        host=cfg.api_host,
        port=cfg.api_port,
        log_level="warning",
        loop="none",  # use the existing event loop
    )
    server = uvicorn.Server(config)
    logger.info(f"Operation API starting on http://{cfg.api_host}:{cfg.api_port}")
    await server.serve()

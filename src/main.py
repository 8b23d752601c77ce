"""Entry point for the mint-risk-radar operation server."""

import asyncio
import signal
import sys

from loguru import logger

from config.settings import Settings, settings
from src.api.server import run_api_server
from src.parsers.errors import ConfigError
from src.parsers.rate_limiter import RateLimiter
from src.parsers.upstream.client import UpstreamClient
from src.parsers.upstream.reader import ChainReader
from src.tools.registry import ToolContext
from src.utils.logger import setup_logger


def build_client(cfg: Settings) -> UpstreamClient:
    """One rate limiter for the whole process, owned by the client."""
    limiter = RateLimiter(cfg.upstream_max_rps, cfg.upstream_max_concurrency)
    return UpstreamClient(
        cfg.upstream_rpc_url,
        limiter,
        timeout=cfg.upstream_timeout_sec,
        max_retries=cfg.upstream_max_retries,
        base_delay=cfg.upstream_retry_base_delay_sec,
        api_key=cfg.upstream_api_key,
    )


async def main() -> None:
    setup_logger(level=settings.log_level, json_logs=settings.json_logs)
    try:
        settings.require_endpoints()
    except ConfigError as e:
        logger.error(f"Startup aborted: {e}")
        sys.exit(1)

    logger.info("Starting mint-risk-radar...")
    client = build_client(settings)
    reader = ChainReader(
        client, settings.upstream_history_url, page_limit=settings.history_page_limit
    )
    context = ToolContext.from_settings(reader, settings)

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    server_task = asyncio.create_task(run_api_server(context, settings))

    done, pending = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    await client.close()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())

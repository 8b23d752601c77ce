"""Upstream client: rate-limited, retrying JSON-RPC and REST transport.

All upstream calls are read-only, so every failure class (transport, RPC
envelope, timeout) is retried with linear backoff. After the last attempt
the final error is raised unchanged.
"""

import asyncio
import itertools
from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger

from src.parsers.rate_limiter import RateLimiter
from src.parsers.upstream.exceptions import (
    RpcError,
    TransportError,
    UpstreamError,
    UpstreamTimeoutError,
)

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 0.5


class UpstreamClient:
    """Async client for the upstream JSON-RPC node and history REST API."""

    def __init__(
        self,
        rpc_url: str,
        rate_limiter: RateLimiter,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        api_key: str = "",
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self._rpc_url = rpc_url
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._ids = itertools.count(1)
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-KEY"] = api_key
        # Deadline is enforced per attempt by wait_for; httpx gets the same bound.
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def close(self) -> None:
        await self._client.aclose()

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return self._base_delay * attempt

    async def call(self, method: str, params: Any = None) -> Any:
        """Invoke a JSON-RPC method and return its ``result``."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params if params is not None else [],
        }
        return await self._request(
            "POST", self._rpc_url, label=method, unwrap=_unwrap_rpc, json=payload
        )

    async def get(self, url: str, query: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", url, label=url, params=query or None)

    async def post(self, url: str, body: Any) -> Any:
        return await self._request("POST", url, label=url, json=body)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        label: str,
        unwrap: Callable[[Any, str], Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Dispatch with per-attempt deadline and linear-backoff retry."""
        attempt = 0
        while True:
            try:
                async with self._rate_limiter.slot():
                    data = await asyncio.wait_for(
                        self._send(method, url, label, **kwargs), timeout=self._timeout
                    )
                return unwrap(data, label) if unwrap is not None else data
            except UpstreamError as e:
                error = e
            except asyncio.TimeoutError:
                error = UpstreamTimeoutError(f"{label} exceeded {self._timeout}s deadline")

            if attempt >= self._max_retries:
                logger.warning(f"[UPSTREAM] {label} failed after {attempt + 1} attempts: {error}")
                raise error

            attempt += 1
            delay = self.backoff_delay(attempt)
            logger.debug(f"[UPSTREAM] {type(error).__name__}, retry {attempt} in {delay}s: {label}")
            await asyncio.sleep(delay)

    async def _send(self, method: str, url: str, label: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"{label}: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{label}: {type(e).__name__}: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"HTTP {resp.status_code} from {label}: {str(resp.text)[:200]}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Undecodable body from {label}") from e


def _unwrap_rpc(data: Any, method: str) -> Any:
    """Return the JSON-RPC ``result`` or raise on an error envelope."""
    if not isinstance(data, dict):
        raise TransportError(f"Malformed JSON-RPC response for {method}")
    error = data.get("error")
    if error is not None:
        if isinstance(error, dict):
            raise RpcError(int(error.get("code", 0)), str(error.get("message", "")))
        raise RpcError(0, str(error))
    if "result" not in data:
        raise TransportError(f"JSON-RPC response for {method} has no result")
    return data["result"]

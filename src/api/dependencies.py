"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request

from src.tools.registry import ToolContext


def get_tool_context(request: Request) -> ToolContext:
    """Return the process-wide tool context built at startup."""
    return request.app.state.tool_context

"""Operation endpoints: list and invoke registered tools."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from src.api.dependencies import get_tool_context
from src.tools.registry import TOOLS, ToolContext, dispatch

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


class ToolInfo(BaseModel):
    name: str
    description: str
    args_schema: dict[str, Any]


@router.get("", response_model=list[ToolInfo])
async def list_tools() -> list[ToolInfo]:
    return [
        ToolInfo(name=t.name, description=t.description, args_schema=t.args_model.model_json_schema())
        for t in TOOLS.values()
    ]


@router.post("/{name}")
async def invoke_tool(
    name: str,
    args: dict[str, Any] | None = Body(default=None),
    ctx: ToolContext = Depends(get_tool_context),
) -> dict[str, Any]:
    """Run one operation; errors are mapped by the app-level handler."""
    return {"result": await dispatch(name, args, ctx)}

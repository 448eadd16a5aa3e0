"""
api/routes/tools.py — Registered tools over HTTP.

GET  /tools       — Schemas of every tool in the registry.
POST /tools/call  — Run one tool by name with a params dict.

No transcription logic here: both endpoints go through the process-wide
ToolRegistry. Tool failures are reported in the body (success=False);
only an unknown tool name is an HTTP error (404).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from tools.registry import get_registry

router = APIRouter(prefix="/tools", tags=["tools"])


class ToolCallRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Registered tool name.")
    params: dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None


@router.get("")
def list_tools() -> list[dict[str, Any]]:
    """Name, description and parameter list of each registered tool."""
    return get_registry().list_tools()


@router.post("/call", response_model=ToolCallResponse)
def call_tool(request: ToolCallRequest) -> ToolCallResponse:
    """Run a registered tool and return its ToolResult.

    Raises:
        HTTPException(404): No tool is registered under request.name.
    """
    registry = get_registry()
    tool = registry.get(request.name)
    if tool is None:
        raise HTTPException(
            status_code=404,
            detail=f"Tool '{request.name}' not found. Available tools: {registry.names()}",
        )

    result = tool(**request.params)
    return ToolCallResponse(**result.to_dict())

"""
Tool routes: the create_midi tool over plain HTTP.

Tool failures are part of the result (isError=true, HTTP 200), same as an MCP
tool call; only a malformed request body is rejected by FastAPI (422).
"""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from core.midi_service import midi_service
from core.models import ToolCallRequest, ToolDescriptor, ToolResponse
from core.progress import LoggingProgress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["Tools"])


@router.get("", response_model=List[ToolDescriptor], response_model_by_alias=True)
def list_tools() -> List[ToolDescriptor]:
    return midi_service.list_tools()


@router.post("/call", response_model=ToolResponse, response_model_by_alias=True)
async def call_tool(req: ToolCallRequest) -> ToolResponse:
    # builds are synchronous and serialized by the service lock
    return await run_in_threadpool(
        midi_service.call_tool,
        req.name,
        req.arguments,
        LoggingProgress(logger),
    )

"""
MCP stdio server exposing the create_midi tool.

stdout carries JSON-RPC only; all logging goes to stderr.

Claude Desktop / other MCP clients:
{
  "mcpServers": {
    "midi": {"command": "midi-mcp", "args": ["serve"]}
  }
}
"""
from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional, Union

import anyio.from_thread
import anyio.to_thread
from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError as MCPToolError

from core.config import get_settings
from core.midi_service import TOOL_DESCRIPTION, MidiService, midi_service
from core.models import TOOL_NAME, ToolResponse
from core.progress import ProgressSink

logger = logging.getLogger("midi_mcp.server")

SERVER_NAME = "midi-mcp-server"
SERVER_VERSION = "0.1.0"


class ContextProgress:
    """
    Forwards (percent, message) to the MCP client as notifications/progress.
    Must be called from a worker thread started by anyio.to_thread.
    """

    def __init__(self, ctx: Context) -> None:
        self._ctx = ctx

    def __call__(self, percent: int, message: str) -> None:
        anyio.from_thread.run(self._ctx.report_progress, float(percent), 100.0, message)


def handle_create_midi(
    arguments: Dict[str, Any],
    *,
    service: MidiService = midi_service,
    progress: Optional[ProgressSink] = None,
) -> str:
    """
    Run one create_midi call; returns the confirmation text.
    Error results are raised as MCP ToolError so the client sees isError=true.
    """
    resp: ToolResponse = service.call_tool(TOOL_NAME, arguments, progress)
    if resp.is_error:
        raise MCPToolError(resp.text)
    return resp.text


def build_server(service: MidiService = midi_service) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)
    async def create_midi(
        ctx: Context,
        title: str,
        output_path: str,
        composition: Optional[Union[Dict[str, Any], str]] = None,
        composition_file: Optional[str] = None,
    ) -> str:
        arguments: Dict[str, Any] = {"title": title, "output_path": output_path}
        if composition is not None:
            arguments["composition"] = composition
        if composition_file is not None:
            arguments["composition_file"] = composition_file

        sink = ContextProgress(ctx)
        return await anyio.to_thread.run_sync(
            lambda: handle_create_midi(arguments, service=service, progress=sink)
        )

    return mcp


def main() -> None:
    s = get_settings()
    logging.basicConfig(
        level=s.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logger.info("%s %s running on stdio", SERVER_NAME, SERVER_VERSION)
    build_server().run()


if __name__ == "__main__":
    main()

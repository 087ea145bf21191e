"""MCP server definition (tool listing + tool calls) and the stdio runner."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .dispatcher import Dispatcher
from .joplin_client import JoplinClient
from .logging import get_logger
from .settings import ConnectionConfig, Settings, build_connection_config
from .tools import TOOL_DESCRIPTORS

logger = get_logger(__name__)

SERVER_NAME = "joplin-server"


@dataclass(slots=True)
class AppContext:
    settings: Settings
    joplin: JoplinClient
    dispatcher: Dispatcher


def create_mcp_server(
    settings: Settings, *, config: ConnectionConfig | None = None
) -> Server[AppContext, Any]:
    # Resolved once per process; each server run only opens a fresh HTTP client.
    connection = config if config is not None else build_connection_config(settings)

    @asynccontextmanager
    async def lifespan(_: Server[AppContext, Any]) -> AsyncIterator[AppContext]:
        joplin = JoplinClient.from_settings(settings, config=connection)
        try:
            yield AppContext(settings=settings, joplin=joplin, dispatcher=Dispatcher(joplin))
        finally:
            await joplin.aclose()

    server: Server[AppContext, Any] = Server(
        SERVER_NAME,
        instructions=(
            "Access and manage Joplin notes, notebooks, tags and attachments via the local "
            "Joplin Data API (Web Clipper service)."
        ),
        lifespan=lifespan,
    )

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return list(TOOL_DESCRIPTORS)

    # Arguments are decoded by the dispatcher so its error messages reach the caller.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        app: AppContext = server.request_context.lifespan_context
        return await app.dispatcher.dispatch(name, arguments)

    return server


async def run_stdio(settings: Settings) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    server = create_mcp_server(settings)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Joplin MCP server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())

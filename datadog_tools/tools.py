"""
Datadog tool registration and dispatch.

Provides MCP tools for:
- Log search (search_logs)
- Span search (search_spans)
- Span aggregation (aggregate_spans)

Usage:
- MCP server: python -m datadog_tools
- Python API: from datadog_tools.tools import dispatch_tool
"""

import logging
from datetime import datetime
from typing import Any

from mcp.server import Server
from mcp.types import CallToolResult, TextContent, Tool

from .backend import TelemetryBackend
from .config import ToolSettings
from .errors import ToolError, error_response
from .logs import tools as log_tools
from .logs.tools import search_logs
from .models import ToolResponse
from .spans import tools as span_tools
from .spans.tools import aggregate_spans, search_spans

logger = logging.getLogger("datadog_tools.tools")

__all__ = [
    "search_logs",
    "search_spans",
    "aggregate_spans",
    "dispatch_tool",
    "get_all_handlers",
    "get_all_tools",
    "register_tools",
    "to_call_tool_result",
]


def get_all_tools() -> list[Tool]:
    """Return the tool definitions of every module."""
    return [*log_tools.get_tool_definitions(), *span_tools.get_tool_definitions()]


def get_all_handlers() -> dict[str, Any]:
    """Return mapping of tool names to handler functions across modules."""
    return {**log_tools.get_handlers(), **span_tools.get_handlers()}


async def dispatch_tool(
    name: str,
    arguments: dict[str, Any] | None,
    backend: TelemetryBackend,
    settings: ToolSettings | None = None,
    now: datetime | None = None,
) -> ToolResponse:
    """Route a tool call by name. Unknown names yield an error response."""
    handler = get_all_handlers().get(name)
    if handler is None:
        logger.warning(f"Unknown tool requested: {name}")
        return error_response(ToolError(f"Unknown tool: {name}"))
    return await handler(arguments, backend, settings, now=now)


def to_call_tool_result(response: ToolResponse) -> CallToolResult:
    """Convert a ToolResponse to the MCP result, one text block per section."""
    return CallToolResult(
        content=[TextContent(type="text", text=text) for text in response.sections],
        isError=response.is_error,
    )


def register_tools(server: Server, backend: TelemetryBackend, settings: ToolSettings) -> None:
    """Register all Datadog tools with the MCP server.

    Args:
        server: The MCP Server instance to register tools with.
        backend: Telemetry backend every tool call is executed against.
        settings: Tool settings shared by all calls.
    """

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return the list of available tools."""
        return get_all_tools()

    # Arguments are validated by the normalizers so that every violation is
    # reported at once.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        """Handle tool invocations."""
        logger.info(f"Calling tool {name}")
        response = await dispatch_tool(name, arguments, backend, settings)
        return to_call_tool_result(response)

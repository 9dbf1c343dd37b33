"""
Tool handler for log search.
"""

from datetime import datetime
from typing import Any

from mcp.types import Tool

from ..backend import SearchExecutor, TelemetryBackend
from ..config import ToolSettings
from ..errors import guarded
from ..models import RecordKind, ToolResponse
from ..shared import normalize_log_search
from ..tool_definitions import get_tools_for_module
from .report import render_log_report
from .transformer import transform_log_page

OPERATION = "Log search"


async def search_logs(
    args: dict[str, Any] | None,
    backend: TelemetryBackend,
    settings: ToolSettings | None = None,
    now: datetime | None = None,
) -> ToolResponse:
    """Search logs: normalize, fetch one page, transform and render."""
    settings = settings or ToolSettings()

    async def run() -> list[str]:
        request = normalize_log_search(args, settings.defaults, now=now)
        raw = await SearchExecutor(backend, settings.executor).execute(RecordKind.LOG, request)
        page = transform_log_page(raw)
        return render_log_report(request, page, settings.report, settings.datadog).texts()

    return await guarded(OPERATION, run)


def get_tool_definitions() -> list[Tool]:
    """Return MCP tool definitions for this module."""
    return get_tools_for_module("logs")


def get_handlers() -> dict[str, Any]:
    """Return mapping of tool names to handler functions."""
    return {
        "search_logs": search_logs,
    }

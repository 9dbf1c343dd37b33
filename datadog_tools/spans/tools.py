"""
Tool handlers for span search and span aggregation.
"""

from datetime import datetime
from typing import Any

from mcp.types import Tool

from ..backend import SearchExecutor, TelemetryBackend
from ..config import ToolSettings
from ..errors import guarded
from ..models import RecordKind, ToolResponse
from ..shared import normalize_span_aggregation, normalize_span_search
from ..tool_definitions import get_tools_for_module
from .report import render_aggregation_report, render_span_report
from .transformer import transform_aggregation_page, transform_span_page


async def search_spans(
    args: dict[str, Any] | None,
    backend: TelemetryBackend,
    settings: ToolSettings | None = None,
    now: datetime | None = None,
) -> ToolResponse:
    """Search spans: normalize, fetch one page, transform and render."""
    settings = settings or ToolSettings()

    async def run() -> list[str]:
        request = normalize_span_search(args, settings.defaults, now=now)
        raw = await SearchExecutor(backend, settings.executor).execute(RecordKind.SPAN, request)
        page = transform_span_page(raw)
        return render_span_report(request, page, settings.report, settings.datadog).texts()

    return await guarded("Span search", run)


async def aggregate_spans(
    args: dict[str, Any] | None,
    backend: TelemetryBackend,
    settings: ToolSettings | None = None,
    now: datetime | None = None,
) -> ToolResponse:
    """Aggregate spans into buckets, as a timeseries or a single total per group."""
    settings = settings or ToolSettings()

    async def run() -> list[str]:
        request = normalize_span_aggregation(args, settings.defaults, now=now)
        raw = await SearchExecutor(backend, settings.executor).execute(RecordKind.BUCKET, request)
        page = transform_aggregation_page(raw, request)
        return render_aggregation_report(request, page, settings.report, settings.datadog).texts()

    return await guarded("Span aggregation", run)


def get_tool_definitions() -> list[Tool]:
    """Return MCP tool definitions for this module."""
    return get_tools_for_module("spans")


def get_handlers() -> dict[str, Any]:
    """Return mapping of tool names to handler functions."""
    return {
        "search_spans": search_spans,
        "aggregate_spans": aggregate_spans,
    }

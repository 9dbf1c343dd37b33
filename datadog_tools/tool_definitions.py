"""
MCP Tool definitions for the Datadog tools.

This module contains all tool schemas and descriptions. Validation happens in
the parameter normalizer, so the schemas describe the arguments without
restricting them further.
"""

from typing import Any

from mcp.types import Tool

from .models import AggregationFunction, ResultType, SortOrder
from .shared import MAX_GROUP_BY, MAX_PAGE_LIMIT, SPAN_FACETS

_TIME_BOUND = {
    "type": ["integer", "number", "string"],
}


def _time_range_properties(subject: str) -> dict[str, Any]:
    return {
        "filterQuery": {
            "type": "string",
            "description": f"Datadog search query for {subject} (e.g., 'service:checkout status:error'). "
            "Empty or '*' matches everything.",
        },
        "filterFrom": {
            **_TIME_BOUND,
            "description": "Start of the time range, epoch seconds. "
            "Default: 15 minutes before filterTo.",
        },
        "filterTo": {
            **_TIME_BOUND,
            "description": "End of the time range, epoch seconds. Default: now.",
        },
    }


def _paging_properties() -> dict[str, Any]:
    return {
        "pageLimit": {
            "type": "integer",
            "minimum": 1,
            "maximum": MAX_PAGE_LIMIT,
            "description": f"Maximum number of results in this page (1-{MAX_PAGE_LIMIT}). Default: 25",
        },
        "pageCursor": {
            "type": "string",
            "description": "Opaque cursor from a previous response's Pagination section to fetch the next page",
        },
        "sort": {
            "type": "string",
            "enum": [s.value for s in SortOrder],
            "description": "Order by timestamp. Default: desc (newest first)",
        },
    }


def get_all_tool_definitions() -> list[Tool]:
    """Return all MCP tool definitions.

    These definitions describe the interface for each tool and are used
    by the MCP server to advertise available tools to clients.
    """
    return [
        # =============================================================================
        # Log Tools
        # =============================================================================
        Tool(
            name="search_logs",
            description="Search Datadog logs and return one page of matching entries. "
            "Returns search criteria, each entry's time, service, host, status, tags and message, "
            "and a cursor for the next page when more results exist. "
            "Example: search_logs(filterQuery='service:checkout status:error', pageLimit=10)",
            inputSchema={
                "type": "object",
                "properties": {
                    **_time_range_properties("logs"),
                    **_paging_properties(),
                },
            },
        ),
        # =============================================================================
        # Span Tools
        # =============================================================================
        Tool(
            name="search_spans",
            description="Search Datadog APM spans and return one page of matching spans. "
            "Returns trace/span ids, service, resource, duration and key HTTP attributes, "
            "and a cursor for the next page when more results exist. "
            "Example: search_spans(filterQuery='service:frontend @http.status_code:500')",
            inputSchema={
                "type": "object",
                "properties": {
                    **_time_range_properties("spans"),
                    **_paging_properties(),
                },
            },
        ),
        Tool(
            name="aggregate_spans",
            description="Aggregate Datadog APM spans into buckets grouped by facets. "
            "Computes count, avg, sum, min, max or a percentile either over time (timeseries) "
            "or as a single value per group (total). "
            "Example: aggregate_spans(filterQuery='env:prod', groupBy=['service'], aggregation='pct', "
            "percentile=95, resultType='total')",
            inputSchema={
                "type": "object",
                "properties": {
                    **_time_range_properties("spans"),
                    "groupBy": {
                        "type": "array",
                        "items": {"type": "string", "enum": list(SPAN_FACETS)},
                        "maxItems": MAX_GROUP_BY,
                        "description": f"Facets to group by (at most {MAX_GROUP_BY}). Default: no grouping",
                    },
                    "aggregation": {
                        "type": "string",
                        "enum": [a.value for a in AggregationFunction],
                        "description": "Aggregation function. Default: count",
                    },
                    "metric": {
                        "type": "string",
                        "description": "Measure to aggregate for non-count functions. Default: @duration",
                    },
                    "percentile": {
                        "type": "integer",
                        "enum": [75, 90, 95, 98, 99],
                        "description": "Percentile for aggregation='pct'. Default: 99",
                    },
                    "resultType": {
                        "type": "string",
                        "enum": [r.value for r in ResultType],
                        "description": "timeseries for values over time, total for one value per group. "
                        "Default: timeseries",
                    },
                    "interval": {
                        "type": "string",
                        "description": "Bucket width for timeseries results (e.g., '1m', '5m', '1h'). Default: 5m",
                    },
                },
            },
        ),
    ]


def get_tools_for_module(module_name: str) -> list[Tool]:
    """Get tool definitions for a specific module."""
    module_tool_names = {
        "logs": ["search_logs"],
        "spans": ["search_spans", "aggregate_spans"],
    }

    tool_names = module_tool_names.get(module_name, [])
    all_tools = get_all_tool_definitions()

    return [t for t in all_tools if t.name in tool_names]

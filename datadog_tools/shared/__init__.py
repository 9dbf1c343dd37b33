"""
Shared request handling for the Datadog tools: time windows and parameter
normalization.
"""

from ..config import DEFAULT_AGGREGATION_LOOKBACK, DEFAULT_LOG_LOOKBACK, DEFAULT_SPAN_LOOKBACK
from .params import (
    GROUP_BY_LIMIT,
    MAX_GROUP_BY,
    MAX_PAGE_LIMIT,
    SPAN_FACETS,
    LogSearchParams,
    SpanAggregationParams,
    SpanSearchParams,
    normalize_log_search,
    normalize_span_aggregation,
    normalize_span_search,
)
from .time_window import (
    TimeBoundPolicy,
    TimeWindowError,
    resolve_time_window,
)

__all__ = [
    # Params
    "GROUP_BY_LIMIT",
    "MAX_GROUP_BY",
    "MAX_PAGE_LIMIT",
    "SPAN_FACETS",
    "LogSearchParams",
    "SpanSearchParams",
    "SpanAggregationParams",
    "normalize_log_search",
    "normalize_span_search",
    "normalize_span_aggregation",
    # Time windows
    "DEFAULT_LOG_LOOKBACK",
    "DEFAULT_SPAN_LOOKBACK",
    "DEFAULT_AGGREGATION_LOOKBACK",
    "TimeBoundPolicy",
    "TimeWindowError",
    "resolve_time_window",
]

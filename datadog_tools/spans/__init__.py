from .report import render_aggregation_report, render_span_report
from .tools import aggregate_spans, search_spans
from .transformer import transform_aggregation_page, transform_compute, transform_span, transform_span_page

__all__ = [
    "render_span_report",
    "render_aggregation_report",
    "search_spans",
    "aggregate_spans",
    "transform_span",
    "transform_span_page",
    "transform_aggregation_page",
    "transform_compute",
]

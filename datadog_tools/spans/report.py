"""
Report rendering for span search and span aggregation results.
"""

from ..config import DatadogSettings, ReportSettings
from ..models import (
    AggregationBucket,
    AggregationFunction,
    AggregationRequest,
    Page,
    Report,
    ReportSection,
    ResultType,
    ScalarCompute,
    SearchRequest,
    SpanRecord,
    TimeSeriesCompute,
)
from ..report import (
    attribute_lines,
    bullet,
    build_url,
    compact,
    criteria_section,
    format_number,
    format_window,
    link_section,
    meta_lines,
    or_unknown,
    pagination_section,
    raw_data_section,
    warnings_section,
)
from ..utils import format_timestamp

KEY_ATTRIBUTES = ("http.method", "http.url", "http.status_code", "error")

NANOS_PER_SECOND = 1_000_000_000


def format_duration(duration_nanos: float) -> str:
    return f"{duration_nanos / NANOS_PER_SECOND:.3f} seconds"


def _format_span(index: int, span: SpanRecord, settings: ReportSettings) -> str:
    lines = [
        f"### [{index}]",
        bullet("Service", or_unknown(span.service, settings)),
    ]
    if span.start:
        lines.append(bullet("Time", format_timestamp(span.start, settings.timezone)))
    if span.resource:
        lines.append(bullet("Resource", span.resource))
    if span.duration_nanos is not None:
        lines.append(bullet("Duration", format_duration(span.duration_nanos)))
    lines.append(bullet("Host", or_unknown(span.host, settings)))
    if span.env:
        lines.append(bullet("Environment", span.env))
    if span.type:
        lines.append(bullet("Type", span.type))
    if span.trace_id:
        lines.append(bullet("Trace ID", span.trace_id))
    if span.span_id:
        lines.append(bullet("Span ID", span.span_id))
    if span.parent_id:
        lines.append(bullet("Parent ID", span.parent_id))

    key_attributes = attribute_lines(span.attributes, KEY_ATTRIBUTES)
    if key_attributes:
        lines.append("#### Key Attributes")
        lines.extend(key_attributes)
    return "\n".join(lines)


def spans_url(request: SearchRequest, datadog: DatadogSettings) -> str:
    return build_url(
        datadog,
        "/apm/traces",
        [
            ("query", request.filter_query),
            ("start", request.window.start_ms),
            ("end", request.window.end_ms),
            ("paused", "true"),
        ],
    )


def render_span_report(
    request: SearchRequest,
    page: Page[SpanRecord],
    settings: ReportSettings | None = None,
    datadog: DatadogSettings | None = None,
) -> Report:
    """Render a span search page as a multi-section report."""
    settings = settings or ReportSettings()
    datadog = datadog or DatadogSettings()

    criteria = criteria_section(
        "Span Search Results",
        "Search Criteria",
        [
            bullet("Query", request.filter_query),
            bullet("Time Range", format_window(request.window, settings)),
            bullet("Sort", request.sort.value),
            bullet("Retrieved", f"{len(page.items)} spans"),
            *meta_lines(page.meta),
        ],
    )

    if page.items:
        entries = [_format_span(i, span, settings) for i, span in enumerate(page.items, start=1)]
        items = ReportSection("items", "## Span Summary\n" + "\n\n".join(entries))
    else:
        items = ReportSection("items", "No spans matched the search criteria.")

    return Report(
        sections=compact(
            [
                criteria,
                pagination_section(page.next_cursor),
                items,
                warnings_section(page.meta),
                raw_data_section(page.items, settings),
                link_section(spans_url(request, datadog), settings),
            ]
        )
    )


def describe_aggregation(request: AggregationRequest) -> str:
    if request.aggregation is AggregationFunction.COUNT:
        return "count"
    if request.aggregation is AggregationFunction.PCT:
        return f"pct (p{request.percentile}) of {request.metric}"
    return f"{request.aggregation.value} of {request.metric}"


def _format_bucket(index: int, bucket: AggregationBucket, settings: ReportSettings) -> str:
    lines = [f"### [{index}] Bucket {bucket.id}" if bucket.id else f"### [{index}]"]
    if bucket.group_values:
        lines.append("Group:")
        lines.extend(f"  {facet}: {value}" for facet, value in bucket.group_values.items())
    if bucket.compute:
        lines.append("Compute:")
        for metric, compute in bucket.compute.items():
            if isinstance(compute, ScalarCompute):
                lines.append(f"  {metric}: {format_number(compute.value)}")
            elif isinstance(compute, TimeSeriesCompute):
                lines.append(f"  {metric}:")
                for point in sorted(compute.points, key=lambda p: p.time):
                    lines.append(
                        f"    {format_timestamp(point.time, settings.timezone)}: {format_number(point.value)}"
                    )
    return "\n".join(lines)


def aggregation_url(request: AggregationRequest, datadog: DatadogSettings) -> str:
    return build_url(
        datadog,
        "/apm/traces",
        [
            ("query", request.filter_query),
            ("start", request.window.start_ms),
            ("end", request.window.end_ms),
            ("paused", "true"),
            ("viz", "timeseries" if request.result_type is ResultType.TIMESERIES else "toplist"),
            ("agg_t", request.backend_aggregation),
            ("agg_m", request.metric),
            ("agg_q", ",".join(request.group_by) if request.group_by else None),
            ("rollup", request.interval),
        ],
    )


def render_aggregation_report(
    request: AggregationRequest,
    page: Page[AggregationBucket],
    settings: ReportSettings | None = None,
    datadog: DatadogSettings | None = None,
) -> Report:
    """Render span aggregation buckets as a multi-section report.

    Each bucket lists its group values before its computes. Timeseries print
    one line per point in chronological order; totals print one value.
    """
    settings = settings or ReportSettings()
    datadog = datadog or DatadogSettings()

    lines = [
        bullet("Query", request.filter_query),
        bullet("Time Range", format_window(request.window, settings)),
        bullet("Aggregation", describe_aggregation(request)),
        bullet("Group By", ", ".join(request.group_by) if request.group_by else "(none)"),
        bullet("Result Type", request.result_type.value),
    ]
    if request.result_type is ResultType.TIMESERIES and request.interval:
        lines.append(bullet("Interval", request.interval))
    lines.append(bullet("Retrieved", f"{len(page.items)} buckets"))
    lines.extend(meta_lines(page.meta))
    criteria = criteria_section("Span Aggregation Results", "Aggregation Criteria", lines)

    if page.items:
        entries = [_format_bucket(i, bucket, settings) for i, bucket in enumerate(page.items, start=1)]
        items = ReportSection("items", "## Buckets\n" + "\n\n".join(entries))
    else:
        items = ReportSection("items", "No buckets found: no spans matched the aggregation criteria.")

    return Report(
        sections=compact(
            [
                criteria,
                pagination_section(page.next_cursor),
                items,
                warnings_section(page.meta),
                raw_data_section(page.items, settings),
                link_section(aggregation_url(request, datadog), settings),
            ]
        )
    )

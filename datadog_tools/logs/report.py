"""
Report rendering for log search results.
"""

from ..config import DatadogSettings, ReportSettings
from ..models import LogRecord, Page, Report, ReportSection, SearchRequest
from ..report import (
    bullet,
    build_url,
    compact,
    criteria_section,
    format_window,
    link_section,
    meta_lines,
    or_unknown,
    pagination_section,
    raw_data_section,
    warnings_section,
)
from ..utils import format_timestamp, truncate_string


def _format_log(index: int, log: LogRecord, settings: ReportSettings) -> str:
    heading = f"### [{index}]"
    if log.timestamp:
        heading += f" {format_timestamp(log.timestamp, settings.timezone)}"
    lines = [
        heading,
        bullet("Service", or_unknown(log.service, settings)),
        bullet("Host", or_unknown(log.host, settings)),
        bullet("Status", or_unknown(log.status, settings)),
    ]
    if log.tags:
        lines.append(bullet("Tags", ", ".join(log.tags)))
    if log.message:
        lines.append(bullet("Message", truncate_string(log.message, settings.message_max_length)))
    return "\n".join(lines)


def logs_url(request: SearchRequest, datadog: DatadogSettings) -> str:
    return build_url(
        datadog,
        "/logs",
        [
            ("query", request.filter_query),
            ("from_ts", request.window.start_ms),
            ("to_ts", request.window.end_ms),
            ("live", "false"),
        ],
    )


def render_log_report(
    request: SearchRequest,
    page: Page[LogRecord],
    settings: ReportSettings | None = None,
    datadog: DatadogSettings | None = None,
) -> Report:
    """Render a log search page as a multi-section report."""
    settings = settings or ReportSettings()
    datadog = datadog or DatadogSettings()

    criteria = criteria_section(
        "Log Search Results",
        "Search Criteria",
        [
            bullet("Query", request.filter_query),
            bullet("Time Range", format_window(request.window, settings)),
            bullet("Sort", request.sort.value),
            bullet("Retrieved", f"{len(page.items)} logs"),
            *meta_lines(page.meta),
        ],
    )

    if page.items:
        entries = [_format_log(i, log, settings) for i, log in enumerate(page.items, start=1)]
        items = ReportSection("items", "## Log Entries\n" + "\n\n".join(entries))
    else:
        items = ReportSection("items", "No logs matched the search criteria.")

    return Report(
        sections=compact(
            [
                criteria,
                pagination_section(page.next_cursor),
                items,
                warnings_section(page.meta),
                raw_data_section(page.items, settings),
                link_section(logs_url(request, datadog), settings),
            ]
        )
    )

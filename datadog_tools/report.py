"""
Report building blocks shared by the log and span renderers.

Rendering is deterministic: times come from the request's resolved window or
the records themselves, never from the clock.
"""

import dataclasses
import json
from enum import Enum
from typing import Any, Iterable, Mapping
from urllib.parse import quote, urlencode

from .config import DatadogSettings, ReportSettings
from .models import ResponseMeta, ReportSection, TimeWindow
from .utils import format_timestamp

PLACEHOLDERS = {
    "en": {"unknown": "unknown"},
    "ja": {"unknown": "不明"},
}


def placeholder(settings: ReportSettings, key: str = "unknown") -> str:
    return PLACEHOLDERS.get(settings.language, PLACEHOLDERS["en"])[key]


def or_unknown(value: str | None, settings: ReportSettings) -> str:
    """Display value, or the localized 'unknown' placeholder when absent."""
    return value if value else placeholder(settings)


def format_number(value: float | int | None) -> str:
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return repr(round(value, 6))
    return str(value)


def format_window(window: TimeWindow, settings: ReportSettings) -> str:
    return (
        f"{format_timestamp(window.start_iso, settings.timezone)} to "
        f"{format_timestamp(window.end_iso, settings.timezone)}"
    )


def bullet(label: str, value: Any) -> str:
    return f"* {label}: {value}"


def criteria_section(title: str, heading: str, lines: Iterable[str]) -> ReportSection:
    text = "\n".join([f"# {title}", f"## {heading}", *lines])
    return ReportSection("criteria", text)


def meta_lines(meta: ResponseMeta) -> list[str]:
    lines = []
    if meta.status:
        lines.append(bullet("Backend Status", meta.status))
    if meta.elapsed_ms is not None:
        lines.append(bullet("Elapsed", f"{meta.elapsed_ms} ms"))
    if meta.request_id:
        lines.append(bullet("Request ID", meta.request_id))
    return lines


def pagination_section(next_cursor: str | None) -> ReportSection | None:
    if not next_cursor:
        return None
    return ReportSection(
        "pagination",
        "## Pagination\n"
        "More results are available. To fetch the next page, call again with the same parameters and\n"
        f"* pageCursor: {next_cursor}",
    )


def warnings_section(meta: ResponseMeta) -> ReportSection | None:
    if not meta.warnings:
        return None
    lines = ["## Warnings"]
    for warning in meta.warnings:
        lines.append(f"- Title: {warning.title}" if warning.title else "- Warning")
        if warning.detail:
            lines.append(f"  Detail: {warning.detail}")
        if warning.code:
            lines.append(f"  Code: {warning.code}")
    return ReportSection("warnings", "\n".join(lines))


def to_jsonable(value: Any) -> Any:
    """Convert models (dataclasses, read-only mappings, enums) to JSON types."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def raw_data_section(items: Iterable[Any], settings: ReportSettings) -> ReportSection | None:
    if not settings.include_raw_data:
        return None
    payload = json.dumps(to_jsonable(list(items)), indent=2, sort_keys=True, ensure_ascii=False, default=str)
    return ReportSection("raw_data", f"## Raw Data\n```json\n{payload}\n```")


def link_section(url: str | None, settings: ReportSettings) -> ReportSection | None:
    if not settings.include_link or not url:
        return None
    return ReportSection("link", f"[View in Datadog]({url})")


def build_url(datadog: DatadogSettings, path: str, params: list[tuple[str, Any]]) -> str:
    """URL-encode already-normalized request fields onto a Datadog UI path."""
    query = urlencode([(k, v) for k, v in params if v is not None], quote_via=quote)
    return f"{datadog.app_url}{path}?{query}"


def compact(sections: Iterable[ReportSection | None]) -> tuple[ReportSection, ...]:
    return tuple(section for section in sections if section is not None)


_MISSING = object()


def lookup_attribute(attributes: Mapping[str, Any], key: str) -> Any:
    """Find ``key`` flat ('http.method') or nested ({'http': {'method': ...}})."""
    if key in attributes:
        return attributes[key]
    value: Any = attributes
    for part in key.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def attribute_lines(attributes: Mapping[str, Any], keys: Iterable[str]) -> list[str]:
    lines = []
    for key in keys:
        value = lookup_attribute(attributes, key)
        if value is not _MISSING:
            lines.append(f"* {key}: `{json.dumps(to_jsonable(value), ensure_ascii=False, sort_keys=True, default=str)}`")
    return lines

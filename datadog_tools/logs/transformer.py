"""
Log page transformation: Datadog log entries to LogRecord values.
"""

from typing import Any

from ..models import LogRecord, Page, RawPage, RecordKind
from ..shared.records import _check_kind, _mapping, _record_attributes, _str_or_none, _tags, transform_meta
from ..utils import normalize_timestamp


def transform_log(record: Any, index: int = 0) -> LogRecord:
    """Map one backend log entry to a LogRecord.

    Missing optional fields stay None; the timestamp becomes a canonical ISO
    string whether the backend sent epoch milliseconds, a datetime or ISO text.
    """
    record_id, attrs = _record_attributes(record, index)
    return LogRecord(
        id=record_id,
        host=_str_or_none(attrs.get("host")),
        service=_str_or_none(attrs.get("service")),
        status=_str_or_none(attrs.get("status")),
        timestamp=normalize_timestamp(attrs.get("timestamp")),
        tags=_tags(attrs.get("tags")),
        attributes=_mapping(attrs.get("attributes")),
        message=_str_or_none(attrs.get("message")),
    )


def transform_log_page(page: RawPage) -> Page[LogRecord]:
    """Transform a raw log page, keeping its continuation cursor unchanged."""
    _check_kind(page, RecordKind.LOG)
    return Page(
        items=tuple(transform_log(record, i) for i, record in enumerate(page.records)),
        next_cursor=page.next_cursor or None,
        meta=transform_meta(page.meta),
    )

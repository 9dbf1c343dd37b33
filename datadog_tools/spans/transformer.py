"""
Span page transformation: span entries to SpanRecord values and aggregation
buckets to AggregationBucket values.
"""

import math
from typing import Any

from ..errors import ShapeError
from ..models import (
    AggregationBucket,
    AggregationRequest,
    ComputeValue,
    Page,
    RawPage,
    RecordKind,
    ResultType,
    ScalarCompute,
    SpanRecord,
    TimeSeriesCompute,
    TimeSeriesPoint,
)
from ..shared.records import _check_kind, _mapping, _record_attributes, _str_or_none, _tags, transform_meta
from ..utils import normalize_timestamp


def _number_or_none(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def transform_span(record: Any, index: int = 0) -> SpanRecord:
    """Map one backend span entry to a SpanRecord.

    The duration is read from the span's custom attributes and kept in
    nanoseconds.
    """
    record_id, attrs = _record_attributes(record, index)
    custom = _mapping(attrs.get("attributes")) or _mapping(attrs.get("custom"))
    return SpanRecord(
        id=record_id,
        trace_id=_str_or_none(attrs.get("trace_id")),
        span_id=_str_or_none(attrs.get("span_id")),
        parent_id=_str_or_none(attrs.get("parent_id")),
        service=_str_or_none(attrs.get("service")),
        resource=_str_or_none(attrs.get("resource_name")),
        host=_str_or_none(attrs.get("host")),
        env=_str_or_none(attrs.get("env")),
        start=normalize_timestamp(attrs.get("start_timestamp")),
        end=normalize_timestamp(attrs.get("end_timestamp")),
        duration_nanos=_number_or_none(custom.get("duration")),
        type=_str_or_none(attrs.get("type")),
        tags=_tags(attrs.get("tags")),
        attributes=custom,
    )


def transform_span_page(page: RawPage) -> Page[SpanRecord]:
    """Transform a raw span page, keeping its continuation cursor unchanged."""
    _check_kind(page, RecordKind.SPAN)
    return Page(
        items=tuple(transform_span(record, i) for i, record in enumerate(page.records)),
        next_cursor=page.next_cursor or None,
        meta=transform_meta(page.meta),
    )


def _compute_number(metric: str, value: Any, where: str = "value") -> float | None:
    """A compute value is JSON null or a JSON number; anything else is a shape error."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ShapeError(f"compute '{metric}' {where} {value!r} is {type(value).__name__}, expected a number")
    return value


def _scalar(metric: str, value: Any) -> ScalarCompute:
    if isinstance(value, (list, tuple, dict)):
        raise ShapeError(
            f"compute '{metric}' is {type(value).__name__} but a total (single value) was requested"
        )
    return ScalarCompute(_compute_number(metric, value))


def _timeseries(metric: str, value: Any) -> TimeSeriesCompute:
    if not isinstance(value, (list, tuple)):
        raise ShapeError(
            f"compute '{metric}' is {type(value).__name__} but a timeseries (list of points) was requested"
        )
    points = []
    for i, point in enumerate(value):
        if not isinstance(point, dict):
            raise ShapeError(f"compute '{metric}' point #{i + 1} is {type(point).__name__}, expected an object")
        time = normalize_timestamp(point.get("time"))
        if time is None:
            raise ShapeError(f"compute '{metric}' point #{i + 1} has no valid time: {point.get('time')!r}")
        value_at = _compute_number(metric, point.get("value"), f"point #{i + 1} value")
        points.append(TimeSeriesPoint(time=time, value=value_at))
    return TimeSeriesCompute(points=tuple(points))


def transform_compute(metric: str, value: Any, result_type: ResultType) -> ComputeValue:
    """Build a compute value of the variant the request declared.

    Raises:
        ShapeError: When the backend value does not match ``result_type``.
    """
    if result_type is ResultType.TIMESERIES:
        return _timeseries(metric, value)
    return _scalar(metric, value)


def transform_bucket(record: Any, result_type: ResultType, index: int = 0) -> AggregationBucket:
    record_id, attrs = _record_attributes(record, index)
    by = _mapping(attrs.get("by"))
    compute = attrs.get("compute")
    if compute is None:
        compute = attrs.get("computes")
    if compute is not None and not isinstance(compute, dict):
        raise ShapeError(f"bucket #{index + 1} compute is {type(compute).__name__}, expected an object")
    return AggregationBucket(
        id=record_id,
        group_values={facet: "" if value is None else str(value) for facet, value in by.items()},
        compute={metric: transform_compute(metric, value, result_type) for metric, value in (compute or {}).items()},
    )


def transform_aggregation_page(page: RawPage, request: AggregationRequest) -> Page[AggregationBucket]:
    """Transform raw aggregation buckets using the request's declared result type.

    Raises:
        ShapeError: On a page of the wrong kind or a compute of the wrong shape.
    """
    _check_kind(page, RecordKind.BUCKET)
    return Page(
        items=tuple(transform_bucket(record, request.result_type, i) for i, record in enumerate(page.records)),
        next_cursor=page.next_cursor or None,
        meta=transform_meta(page.meta),
    )

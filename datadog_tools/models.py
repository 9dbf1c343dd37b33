"""
Domain models shared by the Datadog tools.

Every value here is built fresh for a single tool call and never mutated
afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar, Union

from .utils import to_iso


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class AggregationFunction(str, Enum):
    COUNT = "count"
    AVG = "avg"
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    PCT = "pct"


class ResultType(str, Enum):
    TIMESERIES = "timeseries"
    TOTAL = "total"


class RecordKind(str, Enum):
    """Shape of the records carried by a raw backend page."""

    LOG = "log"
    SPAN = "span"
    BUCKET = "bucket"


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end) of absolute UTC instants."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"TimeWindow start {self.start} must be before end {self.end}")

    @property
    def span(self) -> timedelta:
        return self.end - self.start

    @property
    def start_ms(self) -> int:
        return int(self.start.timestamp() * 1000)

    @property
    def end_ms(self) -> int:
        return int(self.end.timestamp() * 1000)

    @property
    def start_iso(self) -> str:
        return to_iso(self.start)

    @property
    def end_iso(self) -> str:
        return to_iso(self.end)


@dataclass(frozen=True)
class SearchRequest:
    filter_query: str
    window: TimeWindow
    page_limit: int
    page_cursor: str | None = None
    sort: SortOrder = SortOrder.DESC


@dataclass(frozen=True)
class AggregationRequest:
    """Normalized span aggregation request.

    ``interval`` is only set for timeseries requests. ``metric`` is the
    measured attribute for every function except count, and ``percentile``
    only matters for ``pct``.
    """

    filter_query: str
    window: TimeWindow
    aggregation: AggregationFunction = AggregationFunction.COUNT
    result_type: ResultType = ResultType.TIMESERIES
    group_by: tuple[str, ...] = ()
    interval: str | None = "5m"
    metric: str | None = None
    percentile: int | None = None

    @property
    def backend_aggregation(self) -> str:
        """Aggregation function name as the backend spells it."""
        if self.aggregation is AggregationFunction.PCT:
            return f"pc{self.percentile or 99}"
        return self.aggregation.value


def _frozen_mapping(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class LogRecord:
    id: str
    host: str | None = None
    service: str | None = None
    status: str | None = None
    timestamp: str | None = None
    tags: tuple[str, ...] = ()
    attributes: Mapping[str, Any] = field(default_factory=dict)
    message: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))


@dataclass(frozen=True)
class SpanRecord:
    id: str
    trace_id: str | None = None
    span_id: str | None = None
    parent_id: str | None = None
    service: str | None = None
    resource: str | None = None
    host: str | None = None
    env: str | None = None
    start: str | None = None
    end: str | None = None
    # Backend native unit (nanoseconds); converted only when rendering.
    duration_nanos: float | None = None
    type: str | None = None
    tags: tuple[str, ...] = ()
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))


@dataclass(frozen=True)
class TimeSeriesPoint:
    time: str
    value: float | None


@dataclass(frozen=True)
class ScalarCompute:
    value: float | None


@dataclass(frozen=True)
class TimeSeriesCompute:
    points: tuple[TimeSeriesPoint, ...] = ()


ComputeValue = Union[ScalarCompute, TimeSeriesCompute]


@dataclass(frozen=True)
class AggregationBucket:
    id: str
    group_values: Mapping[str, str] = field(default_factory=dict)
    compute: Mapping[str, ComputeValue] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "group_values", _frozen_mapping(self.group_values))
        object.__setattr__(self, "compute", _frozen_mapping(self.compute))


@dataclass(frozen=True)
class BackendWarning:
    code: str | None = None
    title: str | None = None
    detail: str | None = None


@dataclass(frozen=True)
class ResponseMeta:
    elapsed_ms: int | None = None
    request_id: str | None = None
    status: str | None = None
    warnings: tuple[BackendWarning, ...] = ()


@dataclass(frozen=True)
class RawPage:
    """One page exactly as the backend client returned it.

    ``kind`` is set by the client method that produced the page, so the
    transformers can refuse a page of the wrong shape instead of guessing.
    """

    kind: RecordKind
    records: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)


T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """Transformed page. ``next_cursor`` is None once the result set is exhausted."""

    items: tuple[T, ...] = ()
    next_cursor: str | None = None
    meta: ResponseMeta = field(default_factory=ResponseMeta)


@dataclass(frozen=True)
class ReportSection:
    name: str
    text: str


@dataclass(frozen=True)
class Report:
    sections: tuple[ReportSection, ...] = ()

    def section(self, name: str) -> ReportSection | None:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def texts(self) -> list[str]:
        return [section.text for section in self.sections]


@dataclass(frozen=True)
class ToolResponse:
    """What a tool call hands back to the invocation layer."""

    sections: list[str]
    is_error: bool = False

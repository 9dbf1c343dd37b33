"""
Parameter schemas and normalization for the Datadog tools.

Each tool's raw arguments are validated against a pydantic schema, then
defaulted into the request objects the executor understands. Every violated
constraint is collected and reported together.
"""

from datetime import datetime, timedelta
from typing import Any, Literal, Optional

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..config import DefaultsSettings
from ..errors import FieldViolation, ValidationError
from ..models import (
    AggregationFunction,
    AggregationRequest,
    ResultType,
    SearchRequest,
    SortOrder,
)
from .time_window import TimeBoundPolicy, TimeWindowError, resolve_time_window

MAX_PAGE_LIMIT = 1000
MAX_GROUP_BY = 4
GROUP_BY_LIMIT = 10
DEFAULT_METRIC = "@duration"

SPAN_FACETS = (
    "service",
    "resource_name",
    "env",
    "status",
    "operation_name",
    "type",
    "@http.method",
    "@http.status_code",
    "@http.url",
    "@http.url_details.path",
)

# Python field name -> tool parameter name, for error reports.
PUBLIC_NAMES = {
    "filter_query": "filterQuery",
    "filter_from": "filterFrom",
    "filter_to": "filterTo",
    "page_limit": "pageLimit",
    "page_cursor": "pageCursor",
    "sort": "sort",
    "group_by": "groupBy",
    "aggregation": "aggregation",
    "interval": "interval",
    "result_type": "resultType",
    "metric": "metric",
    "percentile": "percentile",
    "query": "filterQuery",
    "startTime": "filterFrom",
    "endTime": "filterTo",
    "limit": "pageLimit",
    "cursor": "pageCursor",
}


def _alias(name: str, *legacy: str) -> AliasChoices:
    # Legacy names are the ones used by the first version of the tools.
    return AliasChoices(name, *legacy)


class _TimeRangeParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    filter_query: Optional[str] = Field(default=None, validation_alias=_alias("filterQuery", "query"))
    # Checked by the time window resolver, not here, so that malformed
    # bounds can fall back to defaults.
    filter_from: Any = Field(default=None, validation_alias=_alias("filterFrom", "startTime"))
    filter_to: Any = Field(default=None, validation_alias=_alias("filterTo", "endTime"))

    @property
    def effective_query(self) -> str:
        if self.filter_query is None or not self.filter_query.strip():
            return "*"
        return self.filter_query.strip()


class _PagedParams(_TimeRangeParams):
    page_limit: Optional[int] = Field(
        default=None, ge=1, le=MAX_PAGE_LIMIT, validation_alias=_alias("pageLimit", "limit")
    )
    page_cursor: Optional[str] = Field(default=None, validation_alias=_alias("pageCursor", "cursor"))
    sort: Optional[SortOrder] = Field(default=None, validation_alias=_alias("sort"))

    @field_validator("page_limit", mode="before")
    @classmethod
    def _reject_bool_limit(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be an integer, not a boolean")
        return value


class LogSearchParams(_PagedParams):
    """Arguments of the search_logs tool."""


class SpanSearchParams(_PagedParams):
    """Arguments of the search_spans tool."""


class SpanAggregationParams(_TimeRangeParams):
    """Arguments of the aggregate_spans tool."""

    group_by: Optional[list[str]] = Field(default=None, validation_alias=_alias("groupBy"))
    aggregation: Optional[AggregationFunction] = Field(default=None, validation_alias=_alias("aggregation"))
    interval: Optional[str] = Field(default=None, validation_alias=_alias("interval"))
    result_type: Optional[ResultType] = Field(default=None, validation_alias=_alias("resultType"))
    metric: Optional[str] = Field(default=None, validation_alias=_alias("metric"))
    percentile: Optional[Literal[75, 90, 95, 98, 99]] = Field(default=None, validation_alias=_alias("percentile"))

    @field_validator("group_by")
    @classmethod
    def _check_group_by(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        unknown = [facet for facet in value if facet not in SPAN_FACETS]
        if unknown:
            raise ValueError(f"unknown facet(s) {unknown}; allowed: {', '.join(SPAN_FACETS)}")
        deduplicated = list(dict.fromkeys(value))
        if len(deduplicated) > MAX_GROUP_BY:
            raise ValueError(f"at most {MAX_GROUP_BY} facets can be grouped, got {len(deduplicated)}")
        return deduplicated


def _violations_from_pydantic(error: pydantic.ValidationError) -> list[FieldViolation]:
    violations = []
    for item in error.errors():
        loc = item.get("loc") or ("<root>",)
        name = str(loc[0])
        name = PUBLIC_NAMES.get(name, name)
        suffix = "".join(f"[{part}]" for part in loc[1:] if isinstance(part, int))
        message = item.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        violations.append(FieldViolation(f"{name}{suffix}", message))
    return violations


def _validate(schema: type[BaseModel], params: dict[str, Any] | None):
    """Validate raw params, returning (model or None, violations)."""
    if params is None:
        params = {}
    if not isinstance(params, dict):
        return None, [FieldViolation("<root>", "parameters must be an object")]
    try:
        return schema.model_validate(params), []
    except pydantic.ValidationError as e:
        return None, _violations_from_pydantic(e)


def _raw_bound(params: dict[str, Any] | None, name: str, legacy: str) -> Any:
    if not isinstance(params, dict):
        return None
    return params.get(name, params.get(legacy))


def _resolve_window(params, defaults: DefaultsSettings, lookback: timedelta, now: datetime | None):
    policy = TimeBoundPolicy.STRICT if defaults.strict_time_bounds else TimeBoundPolicy.FALLBACK
    try:
        window = resolve_time_window(
            _raw_bound(params, "filterFrom", "startTime"),
            _raw_bound(params, "filterTo", "endTime"),
            lookback,
            now=now,
            policy=policy,
        )
        return window, []
    except TimeWindowError as e:
        return None, e.violations


def _normalize_search(
    schema: type[_PagedParams],
    params: dict[str, Any] | None,
    defaults: DefaultsSettings,
    lookback: timedelta,
    now: datetime | None,
) -> SearchRequest:
    model, violations = _validate(schema, params)
    window, time_violations = _resolve_window(params, defaults, lookback, now)
    violations.extend(time_violations)
    if violations:
        raise ValidationError(violations)

    return SearchRequest(
        filter_query=model.effective_query,
        window=window,
        page_limit=model.page_limit if model.page_limit is not None else defaults.page_limit,
        page_cursor=model.page_cursor or None,
        sort=model.sort or SortOrder.DESC,
    )


def normalize_log_search(
    params: dict[str, Any] | None,
    defaults: DefaultsSettings | None = None,
    now: datetime | None = None,
) -> SearchRequest:
    """Validate and default search_logs arguments.

    Raises:
        ValidationError: With every violated field.
    """
    defaults = defaults or DefaultsSettings()
    return _normalize_search(LogSearchParams, params, defaults, defaults.log_lookback, now)


def normalize_span_search(
    params: dict[str, Any] | None,
    defaults: DefaultsSettings | None = None,
    now: datetime | None = None,
) -> SearchRequest:
    """Validate and default search_spans arguments.

    Raises:
        ValidationError: With every violated field.
    """
    defaults = defaults or DefaultsSettings()
    return _normalize_search(SpanSearchParams, params, defaults, defaults.span_lookback, now)


def normalize_span_aggregation(
    params: dict[str, Any] | None,
    defaults: DefaultsSettings | None = None,
    now: datetime | None = None,
) -> AggregationRequest:
    """Validate and default aggregate_spans arguments.

    The interval is kept only for timeseries requests. Count needs no metric;
    the other functions measure ``metric`` (``@duration`` unless given).

    Raises:
        ValidationError: With every violated field.
    """
    defaults = defaults or DefaultsSettings()
    model, violations = _validate(SpanAggregationParams, params)
    window, time_violations = _resolve_window(params, defaults, defaults.aggregation_lookback, now)
    violations.extend(time_violations)
    if violations:
        raise ValidationError(violations)

    aggregation = model.aggregation or AggregationFunction.COUNT
    result_type = model.result_type or ResultType.TIMESERIES
    interval = None
    if result_type is ResultType.TIMESERIES:
        interval = (model.interval or "").strip() or defaults.interval

    metric = None
    if aggregation is not AggregationFunction.COUNT:
        metric = (model.metric or "").strip() or DEFAULT_METRIC

    percentile = None
    if aggregation is AggregationFunction.PCT:
        percentile = model.percentile or 99

    return AggregationRequest(
        filter_query=model.effective_query,
        window=window,
        aggregation=aggregation,
        result_type=result_type,
        group_by=tuple(model.group_by or ()),
        interval=interval,
        metric=metric,
        percentile=percentile,
    )

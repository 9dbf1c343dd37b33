"""
Datadog implementation of the telemetry backend, on top of datadog-api-client v2.

Responses are read as the raw JSON the API sends, so the transformers see the
wire shape (including oneOf compute values) rather than a best-effort model.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator

from datadog_api_client import ApiClient, Configuration
from datadog_api_client.v2.api.logs_api import LogsApi
from datadog_api_client.v2.api.spans_api import SpansApi
from datadog_api_client.v2.model.logs_sort import LogsSort
from datadog_api_client.v2.model.spans_aggregate_data import SpansAggregateData
from datadog_api_client.v2.model.spans_aggregate_request import SpansAggregateRequest
from datadog_api_client.v2.model.spans_aggregate_request_attributes import SpansAggregateRequestAttributes
from datadog_api_client.v2.model.spans_aggregate_request_type import SpansAggregateRequestType
from datadog_api_client.v2.model.spans_aggregation_function import SpansAggregationFunction
from datadog_api_client.v2.model.spans_compute import SpansCompute
from datadog_api_client.v2.model.spans_compute_type import SpansComputeType
from datadog_api_client.v2.model.spans_group_by import SpansGroupBy
from datadog_api_client.v2.model.spans_query_filter import SpansQueryFilter
from datadog_api_client.v2.model.spans_sort import SpansSort

from ..config import DatadogSettings
from ..models import AggregationRequest, RawPage, RecordKind, ResultType, SearchRequest, SortOrder
from ..shared.params import GROUP_BY_LIMIT
from ..utils import safe_get
from .base import TelemetryBackend

logger = logging.getLogger("datadog_tools.backend.datadog")


def _sort_value(sort: SortOrder) -> str:
    return "timestamp" if sort is SortOrder.ASC else "-timestamp"


def build_aggregate_body(request: AggregationRequest) -> SpansAggregateRequest:
    """Build the aggregate request body.

    Exactly one compute is sent: a timeseries compute with the request's
    interval, or a total compute without one.
    """
    compute_kwargs: dict[str, Any] = {
        "aggregation": SpansAggregationFunction(request.backend_aggregation),
        "type": SpansComputeType(request.result_type.value),
    }
    if request.result_type is ResultType.TIMESERIES and request.interval:
        compute_kwargs["interval"] = request.interval
    if request.metric:
        compute_kwargs["metric"] = request.metric

    attributes: dict[str, Any] = {
        "compute": [SpansCompute(**compute_kwargs)],
        "filter": SpansQueryFilter(
            _from=request.window.start_iso,
            to=request.window.end_iso,
            query=request.filter_query,
        ),
    }
    if request.group_by:
        attributes["group_by"] = [SpansGroupBy(facet=facet, limit=GROUP_BY_LIMIT) for facet in request.group_by]

    return SpansAggregateRequest(
        data=SpansAggregateData(
            attributes=SpansAggregateRequestAttributes(**attributes),
            type=SpansAggregateRequestType("aggregate_request"),
        )
    )


def _decode(response: Any) -> dict[str, Any]:
    """Decode a raw urllib3 response body to a dict."""
    payload = getattr(response, "data", response)
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        payload = json.loads(payload) if payload.strip() else {}
    return payload if isinstance(payload, dict) else {}


def _to_page(kind: RecordKind, payload: dict[str, Any]) -> RawPage:
    records = payload.get("data") or []
    meta = payload.get("meta") or {}
    return RawPage(
        kind=kind,
        records=list(records) if isinstance(records, list) else [],
        next_cursor=safe_get(meta, "page", "after"),
        meta=meta if isinstance(meta, dict) else {},
    )


class DatadogBackend(TelemetryBackend):
    """Telemetry backend for the Datadog Logs and Spans v2 APIs.

    The API client configuration is built for every call from the immutable
    settings value, so one instance can serve concurrent calls.
    """

    name = "datadog"

    def __init__(self, settings: DatadogSettings, request_timeout: float | None = None):
        self.settings = settings
        self.request_timeout = request_timeout

    def _configuration(self) -> Configuration:
        configuration = Configuration()
        configuration.api_key["apiKeyAuth"] = self.settings.api_key
        configuration.api_key["appKeyAuth"] = self.settings.app_key
        configuration.server_variables["site"] = self.settings.site
        # Raw JSON bodies; the executor owns timeouts and retries.
        configuration.preload_content = False
        configuration.request_timeout = self.request_timeout
        configuration.enable_retry = False
        configuration.retries = 0
        return configuration

    @contextmanager
    def _api_client(self) -> Iterator[ApiClient]:
        with ApiClient(self._configuration()) as api_client:
            yield api_client

    def search_logs(self, request: SearchRequest) -> RawPage:
        kwargs: dict[str, Any] = {
            "filter_query": request.filter_query,
            "filter_from": request.window.start,
            "filter_to": request.window.end,
            "page_limit": request.page_limit,
            "sort": LogsSort(_sort_value(request.sort)),
        }
        if request.page_cursor:
            kwargs["page_cursor"] = request.page_cursor

        logger.debug(f"Datadog log search: query={request.filter_query!r} limit={request.page_limit}")
        with self._api_client() as api_client:
            # The body is read lazily and must be consumed before the pool closes.
            payload = _decode(LogsApi(api_client).list_logs_get(**kwargs))
        return _to_page(RecordKind.LOG, payload)

    def search_spans(self, request: SearchRequest) -> RawPage:
        kwargs: dict[str, Any] = {
            "filter_query": request.filter_query,
            "filter_from": request.window.start_iso,
            "filter_to": request.window.end_iso,
            "page_limit": request.page_limit,
            "sort": SpansSort(_sort_value(request.sort)),
        }
        if request.page_cursor:
            kwargs["page_cursor"] = request.page_cursor

        logger.debug(f"Datadog span search: query={request.filter_query!r} limit={request.page_limit}")
        with self._api_client() as api_client:
            payload = _decode(SpansApi(api_client).list_spans_get(**kwargs))
        return _to_page(RecordKind.SPAN, payload)

    def aggregate_spans(self, request: AggregationRequest) -> RawPage:
        body = build_aggregate_body(request)

        logger.debug(
            f"Datadog span aggregation: query={request.filter_query!r} "
            f"fn={request.backend_aggregation} type={request.result_type.value} group_by={list(request.group_by)}"
        )
        with self._api_client() as api_client:
            payload = _decode(SpansApi(api_client).aggregate_spans(body=body))
        return _to_page(RecordKind.BUCKET, payload)

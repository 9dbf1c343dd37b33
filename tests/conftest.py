"""Shared test fixtures for all test modules."""

import time
from datetime import datetime, timezone

import pytest

from datadog_tools.backend import TelemetryBackend
from datadog_tools.config import ExecutorSettings, ToolSettings
from datadog_tools.models import RawPage, RecordKind

# 2023-11-14 22:13:20 UTC
NOW_EPOCH = 1_700_000_000
NOW = datetime.fromtimestamp(NOW_EPOCH, tz=timezone.utc)


class FakeBackend(TelemetryBackend):
    """In-memory backend that replays scripted outcomes and records requests.

    Each outcome is a RawPage to return, an exception to raise, or a callable
    run in place of the request.
    """

    name = "fake"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def _next(self, operation, request):
        self.calls.append((operation, request))
        if not self.outcomes:
            raise AssertionError(f"unexpected {operation} call")
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome

    def search_logs(self, request):
        return self._next("search_logs", request)

    def search_spans(self, request):
        return self._next("search_spans", request)

    def aggregate_spans(self, request):
        return self._next("aggregate_spans", request)


def slow(page, seconds):
    """Outcome that blocks the worker thread before returning ``page``."""

    def run():
        time.sleep(seconds)
        return page

    return run


def log_entry(
    entry_id="AQAAAYvNlog1",
    message="payment failed",
    service="checkout",
    status="error",
    timestamp="2023-11-14T22:10:00.000Z",
    host="web-1",
    tags=("env:prod", "team:payments"),
    attributes=None,
):
    return {
        "id": entry_id,
        "type": "log",
        "attributes": {
            "message": message,
            "service": service,
            "status": status,
            "timestamp": timestamp,
            "host": host,
            "tags": list(tags),
            "attributes": attributes if attributes is not None else {"http": {"method": "POST"}},
        },
    }


def span_entry(
    entry_id="AAAAAYvNspan1",
    service="frontend",
    resource_name="GET /api/cart",
    duration=1_234_000_000,
    attributes=None,
):
    custom = {"duration": duration, "http": {"method": "GET", "status_code": "500"}}
    if attributes is not None:
        custom = attributes
    return {
        "id": entry_id,
        "type": "spans",
        "attributes": {
            "trace_id": "7512039421871234",
            "span_id": "1234567890",
            "parent_id": "0",
            "service": service,
            "resource_name": resource_name,
            "host": "web-2",
            "env": "prod",
            "start_timestamp": "2023-11-14T22:12:00.000Z",
            "end_timestamp": "2023-11-14T22:12:01.234Z",
            "type": "web",
            "tags": ["env:prod"],
            "attributes": custom,
        },
    }


def bucket_entry(by, compute, entry_id="bucket-1"):
    return {"id": entry_id, "type": "bucket", "attributes": {"by": by, "compute": compute}}


def raw_page(kind, records=(), after=None, meta=None):
    meta = dict(meta or {})
    if after:
        meta["page"] = {"after": after}
    return RawPage(kind=kind, records=list(records), next_cursor=after, meta=meta)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    """Settings with instant retries so executor tests stay fast."""
    return ToolSettings(
        executor=ExecutorSettings(timeout_seconds=2.0, max_retries=3, backoff_base_seconds=0, backoff_max_seconds=0)
    )


@pytest.fixture
def log_page():
    return raw_page(
        RecordKind.LOG,
        [
            log_entry(),
            log_entry(entry_id="AQAAAYvNlog2", message="retrying payment", status="warn"),
        ],
        after="eyJhZnRlciI6IjEifQ",
    )


@pytest.fixture
def span_page():
    return raw_page(RecordKind.SPAN, [span_entry()])


@pytest.fixture
def total_bucket_page():
    return raw_page(
        RecordKind.BUCKET,
        [
            bucket_entry({"service": "frontend"}, {"c0": 42}, entry_id="b1"),
            bucket_entry({"service": "checkout"}, {"c0": 7.5}, entry_id="b2"),
        ],
    )


@pytest.fixture
def timeseries_bucket_page():
    return raw_page(
        RecordKind.BUCKET,
        [
            bucket_entry(
                {"service": "frontend"},
                {
                    "c0": [
                        {"time": "2023-11-14T22:10:00.000Z", "value": 3},
                        {"time": "2023-11-14T22:05:00.000Z", "value": 1},
                    ]
                },
            )
        ],
    )

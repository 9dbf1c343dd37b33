"""End-to-end tests of the tool layer against a fake backend."""

import pytest
from datadog_api_client.exceptions import ApiException

from conftest import NOW, NOW_EPOCH, FakeBackend, bucket_entry, log_entry, raw_page, span_entry
from datadog_tools.models import RecordKind
from datadog_tools.tool_definitions import get_all_tool_definitions, get_tools_for_module
from datadog_tools.tools import dispatch_tool, get_all_tools, to_call_tool_result


class TestSearchLogs:
    @pytest.mark.asyncio
    async def test_checkout_errors(self, settings):
        """search_logs with a query returns criteria, entries and a cursor."""
        backend = FakeBackend(raw_page(RecordKind.LOG, [log_entry()], after="next-page"))

        response = await dispatch_tool(
            "search_logs", {"filterQuery": "service:checkout status:error", "pageLimit": 10}, backend, settings, now=NOW
        )

        assert response.is_error is False
        assert "* Query: service:checkout status:error" in response.sections[0]
        assert "* pageCursor: next-page" in response.sections[1]
        assert "payment failed" in response.sections[2]
        (operation, request), = backend.calls
        assert operation == "search_logs"
        assert request.page_limit == 10

    @pytest.mark.asyncio
    async def test_cursor_forwarded(self, settings):
        backend = FakeBackend(raw_page(RecordKind.LOG))

        await dispatch_tool("search_logs", {"pageCursor": "next-page"}, backend, settings, now=NOW)

        assert backend.calls[0][1].page_cursor == "next-page"

    @pytest.mark.asyncio
    async def test_empty_result_is_not_an_error(self, settings):
        response = await dispatch_tool("search_logs", {}, FakeBackend(raw_page(RecordKind.LOG)), settings, now=NOW)

        assert response.is_error is False
        assert "No logs matched the search criteria." in response.sections

    @pytest.mark.asyncio
    async def test_validation_error_before_backend(self, settings):
        """Invalid arguments never reach the backend."""
        backend = FakeBackend(raw_page(RecordKind.LOG))

        response = await dispatch_tool("search_logs", {"pageLimit": 0, "sort": "up"}, backend, settings, now=NOW)

        assert response.is_error is True
        assert len(response.sections) == 1
        assert response.sections[0].startswith("ValidationError: Invalid parameters (2): ")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_backend_error_message(self, settings):
        error = ApiException(status=403, reason="Forbidden")
        error.body = b'{"errors":["Forbidden"]}'
        backend = FakeBackend(error)

        response = await dispatch_tool("search_logs", {}, backend, settings, now=NOW)

        assert response.is_error is True
        assert response.sections == [
            'BackendError: Log search failed: Datadog API error: (403) Forbidden: {"errors":["Forbidden"]}'
        ]
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, settings):
        backend = FakeBackend(ApiException(status=503, reason="Unavailable"), raw_page(RecordKind.LOG, [log_entry()]))

        response = await dispatch_tool("search_logs", {}, backend, settings, now=NOW)

        assert response.is_error is False
        assert len(backend.calls) == 2

    @pytest.mark.asyncio
    async def test_unexpected_exception_contained(self, settings):
        backend = FakeBackend(KeyError("attributes"))

        response = await dispatch_tool("search_logs", {}, backend, settings, now=NOW)

        assert response.is_error is True
        assert response.sections[0].startswith("BackendError: Log search failed: ")


class TestSearchSpans:
    @pytest.mark.asyncio
    async def test_spans(self, settings):
        backend = FakeBackend(raw_page(RecordKind.SPAN, [span_entry()]))

        response = await dispatch_tool(
            "search_spans",
            {"filterQuery": "service:frontend", "filterFrom": NOW_EPOCH - 3600, "filterTo": NOW_EPOCH},
            backend,
            settings,
            now=NOW,
        )

        assert response.is_error is False
        assert response.sections[0].startswith("# Span Search Results")
        assert backend.calls[0][1].window.start_ms == (NOW_EPOCH - 3600) * 1000

    @pytest.mark.asyncio
    async def test_wrong_record_kind_is_shape_error(self, settings):
        backend = FakeBackend(raw_page(RecordKind.LOG, [log_entry()]))

        response = await dispatch_tool("search_spans", {}, backend, settings, now=NOW)

        assert response.is_error is True
        assert response.sections[0].startswith("ShapeError: ")


class TestAggregateSpans:
    @pytest.mark.asyncio
    async def test_total_per_service(self, settings, total_bucket_page):
        backend = FakeBackend(total_bucket_page)

        response = await dispatch_tool(
            "aggregate_spans", {"groupBy": ["service"], "resultType": "total"}, backend, settings, now=NOW
        )

        assert response.is_error is False
        items = "\n".join(response.sections)
        assert "service: frontend" in items
        assert "c0: 42" in items

    @pytest.mark.asyncio
    async def test_empty_total(self, settings):
        """No matching spans is a successful, empty report."""
        backend = FakeBackend(raw_page(RecordKind.BUCKET))

        response = await dispatch_tool("aggregate_spans", {"resultType": "total"}, backend, settings, now=NOW)

        assert response.is_error is False
        assert "No buckets found: no spans matched the aggregation criteria." in response.sections

    @pytest.mark.asyncio
    async def test_series_returned_for_total_request(self, settings):
        page = raw_page(RecordKind.BUCKET, [bucket_entry({}, {"c0": [{"time": "2023-11-14T22:05:00Z", "value": 1}]})])

        response = await dispatch_tool(
            "aggregate_spans", {"resultType": "total"}, FakeBackend(page), settings, now=NOW
        )

        assert response.is_error is True
        assert response.sections[0].startswith("ShapeError: ")

    @pytest.mark.asyncio
    async def test_invalid_facet(self, settings):
        backend = FakeBackend(raw_page(RecordKind.BUCKET))

        response = await dispatch_tool("aggregate_spans", {"groupBy": ["nope"]}, backend, settings, now=NOW)

        assert response.is_error is True
        assert "groupBy" in response.sections[0]
        assert backend.calls == []


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_tool(self, settings):
        response = await dispatch_tool("delete_logs", {}, FakeBackend(), settings)

        assert response.is_error is True
        assert response.sections == ["ToolError: Unknown tool: delete_logs"]

    def test_call_tool_result(self):
        from datadog_tools.models import ToolResponse

        result = to_call_tool_result(ToolResponse(sections=["a", "b"], is_error=True))

        assert [c.text for c in result.content] == ["a", "b"]
        assert result.isError is True


class TestToolDefinitions:
    def test_all_tools_advertised(self):
        assert [t.name for t in get_all_tools()] == ["search_logs", "search_spans", "aggregate_spans"]

    def test_tools_for_module(self):
        assert [t.name for t in get_tools_for_module("spans")] == ["search_spans", "aggregate_spans"]
        assert get_tools_for_module("metrics") == []

    def test_schemas_use_public_names(self):
        schemas = {t.name: t.inputSchema for t in get_all_tool_definitions()}

        assert "pageCursor" in schemas["search_logs"]["properties"]
        assert "groupBy" in schemas["aggregate_spans"]["properties"]
        assert "pageCursor" not in schemas["aggregate_spans"]["properties"]


class TestDocumentedExamples:
    @pytest.mark.asyncio
    async def test_log_search_example(self, settings):
        """Two records and no cursor: query and count shown, no pagination section."""
        backend = FakeBackend(raw_page(RecordKind.LOG, [log_entry(entry_id="1"), log_entry(entry_id="2")]))

        response = await dispatch_tool(
            "search_logs",
            {"filterQuery": "service:checkout", "filterFrom": 1700000000, "filterTo": 1700003600, "pageLimit": 10},
            backend,
            settings,
            now=NOW,
        )

        criteria = response.sections[0]
        assert response.is_error is False
        assert "* Query: service:checkout" in criteria
        assert "* Retrieved: 2 logs" in criteria
        assert "* Time Range: 2023-11-14 22:13:20.000 UTC to 2023-11-14 23:13:20.000 UTC" in criteria
        assert not any(section.startswith("## Pagination") for section in response.sections)

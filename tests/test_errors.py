"""Tests for error classification."""

import asyncio

import pytest
from datadog_api_client.exceptions import ApiException, ApiValueError
from urllib3.exceptions import MaxRetryError, NewConnectionError, ProtocolError, ReadTimeoutError

from datadog_tools.errors import (
    BackendError,
    FieldViolation,
    ShapeError,
    ValidationError,
    classify_error,
    error_response,
    guarded,
    is_transient,
)


class TestIsTransient:
    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504, 599])
    def test_transient_statuses(self, status):
        assert is_transient(ApiException(status=status, reason="x"))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_errors(self, status):
        assert not is_transient(ApiException(status=status, reason="x"))

    def test_timeouts_and_connection_errors(self):
        assert is_transient(asyncio.TimeoutError())
        assert is_transient(ConnectionResetError())

    @pytest.mark.parametrize(
        "error",
        [
            MaxRetryError(None, "/api/v2/logs/events", reason=NewConnectionError(None, "Connection refused")),
            ReadTimeoutError(None, "/api/v2/spans/events", "Read timed out."),
            ProtocolError("Connection aborted.", ConnectionResetError(104, "reset")),
            NewConnectionError(None, "Failed to establish a new connection"),
        ],
        ids=["max-retry", "read-timeout", "protocol", "new-connection"],
    )
    def test_transport_errors(self, error):
        assert is_transient(error)

    def test_other_errors(self):
        assert not is_transient(ValueError("bad"))


class TestClassifyError:
    def test_tool_errors_pass_through(self):
        error = ShapeError("bad shape")

        assert classify_error("Span search", error) is error

    def test_api_exception(self):
        error = classify_error("Span aggregation", ApiException(status=400, reason="Bad Request"))

        assert isinstance(error, BackendError)
        assert error.status == 400
        assert error.message == "Span aggregation failed: Datadog API error: (400) Bad Request"

    def test_timeout(self):
        error = classify_error("Log search", asyncio.TimeoutError())

        assert error.message == "Log search failed: Datadog API error: request timed out"

    def test_client_side_api_error(self):
        error = classify_error("Log search", ApiValueError("invalid sort"))

        assert isinstance(error, BackendError)
        assert "invalid sort" in error.message

    def test_transport_timeout(self):
        error = classify_error(
            "Span search", MaxRetryError(None, "/api/v2/spans/events", reason=ReadTimeoutError(None, "/", "Read timed out."))
        )

        assert isinstance(error, BackendError)
        assert error.message == "Span search failed: Datadog API error: request timed out"

    def test_transport_connection_failure(self):
        cause = NewConnectionError(None, "Failed to establish a new connection: [Errno 111] Connection refused")

        error = classify_error("Log search", MaxRetryError(None, "/api/v2/logs/events", reason=cause))

        assert error.message.startswith("Log search failed: Datadog API error: connection failed: ")
        assert "Connection refused" in error.message

    def test_protocol_error(self):
        error = classify_error("Log search", ProtocolError("Connection aborted."))

        assert error.message == "Log search failed: Datadog API error: connection failed: Connection aborted."

    def test_unexpected(self):
        error = classify_error("Log search", RuntimeError("boom"))

        assert isinstance(error, BackendError)
        assert error.message.endswith("RuntimeError: boom")


class TestResponses:
    def test_validation_message_lists_every_field(self):
        error = ValidationError([FieldViolation("pageLimit", "too small"), FieldViolation("sort", "unknown")])

        assert error.fields == ["pageLimit", "sort"]
        assert error_response(error).sections == [
            "ValidationError: Invalid parameters (2): pageLimit: too small; sort: unknown"
        ]

    @pytest.mark.asyncio
    async def test_guarded_success(self):
        async def run():
            return ["one", "two"]

        response = await guarded("Log search", run)

        assert response.sections == ["one", "two"]
        assert response.is_error is False

    @pytest.mark.asyncio
    async def test_guarded_failure(self):
        async def run():
            raise ShapeError("compute 'c0' is list")

        response = await guarded("Span aggregation", run)

        assert response.is_error is True
        assert response.sections == ["ShapeError: compute 'c0' is list"]

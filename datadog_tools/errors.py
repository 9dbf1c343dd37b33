"""
Error kinds for the Datadog tools and the classifier that maps any pipeline
failure onto one of them.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from datadog_api_client.exceptions import ApiException, OpenApiException
from urllib3.exceptions import HTTPError as TransportError
from urllib3.exceptions import MaxRetryError, NewConnectionError, ProtocolError
from urllib3.exceptions import TimeoutError as TransportTimeoutError

from .models import ToolResponse

logger = logging.getLogger("datadog_tools.errors")


class ToolError(Exception):
    """Base class for errors reported back to the tool caller."""

    kind = "ToolError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class FieldViolation:
    field: str
    constraint: str


class ValidationError(ToolError):
    """One or more request parameters violate their constraints.

    Carries every violation, not only the first one found.
    """

    kind = "ValidationError"

    def __init__(self, violations: list[FieldViolation]):
        self.violations = list(violations)
        details = "; ".join(f"{v.field}: {v.constraint}" for v in self.violations)
        super().__init__(f"Invalid parameters ({len(self.violations)}): {details}")

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]


class BackendError(ToolError):
    """The telemetry backend failed (transport or application level)."""

    kind = "BackendError"

    def __init__(self, operation: str, message: str, status: int | None = None):
        self.operation = operation
        self.status = status
        super().__init__(f"{operation} failed: Datadog API error: {message}")


class ShapeError(ToolError):
    """The backend answered with a shape the request does not allow."""

    kind = "ShapeError"


TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Raised by the urllib3 transport under datadog-api-client.
TRANSIENT_TRANSPORT_ERRORS = (MaxRetryError, TransportTimeoutError, ProtocolError, NewConnectionError)


def is_transient(exc: BaseException) -> bool:
    """Return True for failures worth retrying: timeouts, connection errors, 429 and 5xx."""
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return True
    if isinstance(exc, TRANSIENT_TRANSPORT_ERRORS):
        return True
    if isinstance(exc, ApiException):
        status = exc.status or 0
        return status in TRANSIENT_STATUS_CODES or status >= 500
    return False


def _api_exception_message(exc: ApiException) -> str:
    """Prefer the backend's own error body over the generic reason phrase."""
    body = exc.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if body:
        return f"({exc.status}) {exc.reason}: {body}"
    return f"({exc.status}) {exc.reason}"


def _transport_message(exc: TransportError) -> str:
    reason = exc.reason if isinstance(exc, MaxRetryError) and exc.reason is not None else exc
    # NewConnectionError derives from the connect timeout in urllib3 2.x.
    if isinstance(reason, TransportTimeoutError) and not isinstance(reason, NewConnectionError):
        return "request timed out"
    return f"connection failed: {reason}"


def classify_error(operation: str, exc: BaseException) -> ToolError:
    """Map an exception raised anywhere in a tool pipeline to a ToolError.

    Args:
        operation: Human-readable operation name, e.g. 'Log search'.
        exc: The exception that escaped the pipeline.

    Returns:
        The exception itself when already classified, otherwise a BackendError.
    """
    if isinstance(exc, ToolError):
        return exc
    if isinstance(exc, ApiException):
        return BackendError(operation, _api_exception_message(exc), status=exc.status)
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return BackendError(operation, "request timed out")
    if isinstance(exc, TransportError):
        return BackendError(operation, _transport_message(exc))
    if isinstance(exc, (OpenApiException, OSError)):
        return BackendError(operation, str(exc) or type(exc).__name__)
    logger.exception(f"Unexpected error during {operation}")
    return BackendError(operation, f"{type(exc).__name__}: {exc}")


def error_response(error: ToolError) -> ToolResponse:
    """Render a classified error as the single-section error response."""
    return ToolResponse(sections=[f"{error.kind}: {error.message}"], is_error=True)


async def guarded(operation: str, run: Callable[[], Awaitable[list[str]]]) -> ToolResponse:
    """Run a tool pipeline and turn any failure into an error response.

    Every call yields exactly one success or error response; nothing escapes.
    """
    try:
        sections = await run()
    except Exception as e:
        error = classify_error(operation, e)
        if isinstance(error, ValidationError):
            logger.info(f"{operation} rejected: {error.message}")
        else:
            logger.error(f"{operation} failed with {error.kind}: {error.message}")
        return error_response(error)
    return ToolResponse(sections=sections, is_error=False)

from abc import ABC, abstractmethod

from ..models import AggregationRequest, RawPage, SearchRequest


class TelemetryBackend(ABC):
    """
    Abstract base class for telemetry backends (logs and spans).

    Each method performs exactly one request and returns one page. Failures
    are raised unchanged; classification happens in the tool layer.
    """

    name = "telemetry"

    @abstractmethod
    def search_logs(self, request: SearchRequest) -> RawPage:
        """Fetch one page of log entries.

        Returns:
            RawPage of kind LOG. ``next_cursor`` is the backend's continuation
            token, or None on the last page.
        """

    @abstractmethod
    def search_spans(self, request: SearchRequest) -> RawPage:
        """Fetch one page of spans.

        Returns:
            RawPage of kind SPAN.
        """

    @abstractmethod
    def aggregate_spans(self, request: AggregationRequest) -> RawPage:
        """Run a span aggregation.

        Returns:
            RawPage of kind BUCKET with one record per group.
        """

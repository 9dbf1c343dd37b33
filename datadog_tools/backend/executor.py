"""
Single round-trip execution against a telemetry backend.

The backend client is synchronous, so each request runs in the default
executor under a timeout. Transient failures are retried with exponential
backoff; the executor never follows pagination cursors itself.
"""

import asyncio
import logging
from typing import Callable

from ..config import ExecutorSettings
from ..errors import is_transient
from ..models import AggregationRequest, RawPage, RecordKind, SearchRequest
from .base import TelemetryBackend

logger = logging.getLogger("datadog_tools.executor")


class SearchExecutor:
    """Runs one normalized request against a backend and returns one raw page."""

    def __init__(
        self,
        backend: TelemetryBackend,
        settings: ExecutorSettings | None = None,
        sleep: Callable[[float], "asyncio.Future"] = asyncio.sleep,
    ):
        self.backend = backend
        self.settings = settings or ExecutorSettings()
        self._sleep = sleep

    def _backoff(self, attempt: int) -> float:
        delay = self.settings.backoff_base_seconds * (2**attempt)
        return min(delay, self.settings.backoff_max_seconds)

    def _target(self, kind: RecordKind, request: SearchRequest | AggregationRequest) -> Callable[[], RawPage]:
        if kind is RecordKind.LOG:
            return lambda: self.backend.search_logs(request)
        if kind is RecordKind.SPAN:
            return lambda: self.backend.search_spans(request)
        if kind is RecordKind.BUCKET:
            return lambda: self.backend.aggregate_spans(request)
        raise ValueError(f"Unknown record kind: {kind}")

    async def execute(self, kind: RecordKind, request: SearchRequest | AggregationRequest) -> RawPage:
        """Fetch one page of ``kind`` records for ``request``.

        Raises:
            Whatever the backend raised on the last attempt, or
            asyncio.TimeoutError when the last attempt timed out.
        """
        target = self._target(kind, request)
        attempts = self.settings.max_retries
        loop = asyncio.get_running_loop()

        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(
                    loop.run_in_executor(None, target),
                    timeout=self.settings.timeout_seconds,
                )
            except Exception as e:
                if not is_transient(e) or attempt + 1 >= attempts:
                    raise
                delay = self._backoff(attempt)
                logger.warning(
                    f"{self.backend.name} {kind.value} request failed with {type(e).__name__}: {e} "
                    f"(attempt {attempt + 1}/{attempts}), retrying in {delay:.2f}s"
                )
                await self._sleep(delay)

        raise RuntimeError("unreachable: retry loop exited without result")

"""
Telemetry backend clients and the executor that drives them.
"""

from .base import TelemetryBackend
from .datadog import DatadogBackend, build_aggregate_body
from .executor import SearchExecutor

__all__ = [
    "TelemetryBackend",
    "DatadogBackend",
    "SearchExecutor",
    "build_aggregate_body",
]

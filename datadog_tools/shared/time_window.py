"""
Time window resolution for tool requests.

Bounds arrive as epoch seconds from the caller. Missing bounds fall back to
"now" and "now minus the operation's lookback". Malformed bounds follow an
explicit TimeBoundPolicy.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from ..errors import FieldViolation
from ..models import TimeWindow

logger = logging.getLogger("datadog_tools.time_window")


class TimeBoundPolicy(str, Enum):
    """What to do with a supplied bound that is not a valid instant.

    FALLBACK treats the bound as absent and uses its default.
    STRICT reports it as a validation violation.
    """

    FALLBACK = "fallback"
    STRICT = "strict"


class TimeWindowError(Exception):
    """Raised in strict mode with every rejected bound."""

    def __init__(self, violations: list[FieldViolation]):
        super().__init__("; ".join(f"{v.field}: {v.constraint}" for v in violations))
        self.violations = violations


def _parse_epoch_seconds(value: Any) -> datetime | None:
    """Parse epoch seconds (number or numeric string) into an aware UTC datetime.

    Returns None for bools, non-numeric values, NaN, infinities, negative
    values and values outside the datetime range.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def resolve_time_window(
    raw_from: Any,
    raw_to: Any,
    default_span: timedelta,
    *,
    now: datetime | None = None,
    policy: TimeBoundPolicy = TimeBoundPolicy.FALLBACK,
    from_field: str = "filterFrom",
    to_field: str = "filterTo",
) -> TimeWindow:
    """Resolve a concrete [start, end) window from optional caller bounds.

    Args:
        raw_from: Start bound in epoch seconds, or None.
        raw_to: End bound in epoch seconds, or None.
        default_span: Lookback used when the start bound is missing or unusable.
        now: Reference "now"; read from the clock when omitted.
        policy: Handling of malformed or inverted bounds.
        from_field: Parameter name reported for the start bound.
        to_field: Parameter name reported for the end bound.

    Returns:
        A TimeWindow with start < end. Valid, ordered bounds pass through unchanged.

    Raises:
        TimeWindowError: In strict mode, when a supplied bound is malformed or
            the bounds are inverted.
    """
    if default_span <= timedelta(0):
        raise ValueError(f"default_span must be positive, got {default_span}")

    now = now or datetime.now(timezone.utc)
    start = _parse_epoch_seconds(raw_from)
    end = _parse_epoch_seconds(raw_to)

    violations = []
    if raw_from is not None and start is None:
        violations.append(FieldViolation(from_field, "must be a finite, non-negative epoch seconds value"))
    if raw_to is not None and end is None:
        violations.append(FieldViolation(to_field, "must be a finite, non-negative epoch seconds value"))
    if end is None:
        end = now
    if start is not None and start >= end:
        violations.append(FieldViolation(from_field, f"must be earlier than {to_field if raw_to is not None else 'now'}"))

    if violations:
        if policy is TimeBoundPolicy.STRICT:
            raise TimeWindowError(violations)
        logger.debug(f"Falling back to default time bounds: {violations}")

    if start is not None and start >= end:
        # Inverted bounds: the start is discarded and re-derived, never swapped.
        start = None
    if start is None:
        start = end - default_span

    return TimeWindow(start=start, end=end)

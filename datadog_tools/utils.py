"""
Shared utilities for Datadog tools.

Common functions used by the transformers and report renderers.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo


ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_iso(dt: datetime) -> str:
    """Format a datetime as a canonical ISO-8601 UTC string.

    Args:
        dt: Datetime to format. Naive values are taken as UTC.

    Returns:
        String like '2023-11-14T22:13:20.123Z' (millisecond resolution).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return f"{dt.strftime(ISO_FORMAT)}.{dt.microsecond // 1000:03d}Z"


def parse_iso(ts: str) -> datetime:
    """Parse an ISO-8601 string (with 'Z' or offset) to an aware datetime.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_timestamp(value: Any) -> str | None:
    """Convert a backend timestamp to the canonical ISO string.

    Accepts datetimes, epoch milliseconds (int/float) and ISO strings.
    Returns None for anything that cannot be read as an instant.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return to_iso(EPOCH + timedelta(milliseconds=value))
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return to_iso(parse_iso(value))
        except ValueError:
            return None
    return None


def format_timestamp(ts: str | datetime, tz_name: str = "UTC") -> str:
    """Format a timestamp for display.

    Args:
        ts: Canonical ISO string or datetime.
        tz_name: IANA timezone to display in.

    Returns:
        Human-readable timestamp with milliseconds and zone,
        e.g. '2023-11-14 22:13:20.123 UTC'.
    """
    dt = parse_iso(ts) if isinstance(ts, str) else ts
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    local = dt.astimezone(ZoneInfo(tz_name))
    return f"{local.strftime(DISPLAY_FORMAT)}.{local.microsecond // 1000:03d} {tz_name}"


def truncate_string(s: str, max_length: int = 500, suffix: str = "…[truncated]") -> str:
    """Truncate a string to a maximum length.

    Args:
        s: String to truncate.
        max_length: Maximum number of characters kept from the original.
        suffix: Marker appended when truncated.

    Returns:
        Original or truncated string.
    """
    if len(s) <= max_length:
        return s
    return s[:max_length] + suffix


def safe_get(data: Any, *keys: str | int, default: Any = None) -> Any:
    """Safely get a nested value from a dictionary.

    Args:
        data: Dictionary to traverse.
        *keys: Sequence of keys to follow.
        default: Default value if path doesn't exist.

    Returns:
        Value at the path, or default if not found.

    Example:
        safe_get(payload, "meta", "page", "after")
    """
    result = data
    for key in keys:
        if isinstance(result, dict):
            if key not in result:
                return default
            result = result[key]
        elif isinstance(result, list) and isinstance(key, int):
            if 0 <= key < len(result):
                result = result[key]
            else:
                return default
        else:
            return default
    return default if result is None else result

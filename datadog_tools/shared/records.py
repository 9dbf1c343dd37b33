"""
Helpers shared by the record transformers.
"""

from typing import Any

from ..errors import ShapeError
from ..models import BackendWarning, RawPage, RecordKind, ResponseMeta


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _tags(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple, set)):
        return ()
    return tuple(dict.fromkeys(str(tag) for tag in value))


def _mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _record_attributes(record: Any, index: int) -> tuple[str, dict[str, Any]]:
    """Return (id, attributes) of a JSON:API style record."""
    if not isinstance(record, dict):
        raise ShapeError(f"record #{index + 1} is {type(record).__name__}, expected an object")
    return str(record.get("id") or ""), _mapping(record.get("attributes"))


def _check_kind(page: RawPage, expected: RecordKind) -> None:
    if page.kind is not expected:
        raise ShapeError(f"expected a page of {expected.value} records, got {page.kind.value} records")


def transform_meta(meta: dict[str, Any] | None) -> ResponseMeta:
    """Copy elapsed time, request id, status and warnings from page metadata."""
    meta = meta or {}
    elapsed = meta.get("elapsed")
    warnings = []
    for warning in meta.get("warnings") or []:
        if isinstance(warning, dict):
            warnings.append(
                BackendWarning(
                    code=_str_or_none(warning.get("code")),
                    title=_str_or_none(warning.get("title")),
                    detail=_str_or_none(warning.get("detail")),
                )
            )
    return ResponseMeta(
        elapsed_ms=int(elapsed) if isinstance(elapsed, (int, float)) and not isinstance(elapsed, bool) else None,
        request_id=_str_or_none(meta.get("request_id")),
        status=_str_or_none(meta.get("status")),
        warnings=tuple(warnings),
    )

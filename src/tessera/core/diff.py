"""
JSON document diffing for edit review.

Records are compared by position. Values are normalized before comparison so
float noise below the configured precision does not show up as a change, and
a bool never compares equal to a number.
"""
from typing import Any, List, Optional, Set

from tessera.config import settings
from tessera.models import (
    DiffResult,
    JsonArray,
    JsonBool,
    JsonDocument,
    JsonFloat,
    JsonInt,
    JsonNull,
    JsonObject,
    JsonString,
    JsonValue,
    KeyMismatch,
    KeyMismatchKind,
    Schema,
)


def _comparable(value: JsonValue, precision: int) -> Any:
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, JsonBool):
        return ("bool", value.value)
    if isinstance(value, JsonInt):
        return ("num", value.value)
    if isinstance(value, JsonFloat):
        return ("num", round(value.value, precision))
    if isinstance(value, JsonString):
        return ("str", value.value)
    if isinstance(value, JsonArray):
        return ("array", tuple(_comparable(item, precision) for item in value.items))
    if isinstance(value, JsonObject):
        return ("object", tuple(sorted(
            (k, _comparable(v, precision)) for k, v in value.members.items()
        )))
    raise TypeError(f"Unsupported JSON node: {type(value).__name__}")


def values_equal(left: JsonValue, right: JsonValue, precision: Optional[int] = None) -> bool:
    digits = settings.DIFF_FLOAT_PRECISION if precision is None else precision
    return _comparable(left, digits) == _comparable(right, digits)


def build_diff(
    current: JsonDocument,
    updated: JsonDocument,
    schema: Schema,
    precision: Optional[int] = None,
) -> DiffResult:
    """
    Compare two documents record by record.

    Args:
        current: The committed document.
        updated: The proposed document.
        schema: Columns to compare; updated keys outside it are reported as Unknown.
        precision: Decimal places floats are rounded to before comparison.

    Returns:
        DiffResult with added/removed/modified record indices and key mismatches.
    """
    known = set(schema.names())
    modified: Set[int] = set()
    mismatches: List[KeyMismatch] = []

    shared = min(len(current.records), len(updated.records))
    for index in range(shared):
        before = current.records[index]
        after = updated.records[index]
        changed = False

        for column in schema.columns:
            name = column.name
            if name not in before or name not in after:
                mismatches.append(KeyMismatch(record_index=index, key=name, kind=KeyMismatchKind.MISSING))
                modified.add(index)
                continue
            if not changed and not values_equal(before[name], after[name], precision):
                changed = True
                modified.add(index)

        for key in after:
            if key not in known:
                mismatches.append(KeyMismatch(record_index=index, key=key, kind=KeyMismatchKind.UNKNOWN))
                modified.add(index)

    added = list(range(len(current.records), len(updated.records)))
    removed = list(range(len(updated.records), len(current.records)))

    return DiffResult(
        added=added,
        removed=removed,
        modified=sorted(modified),
        key_mismatches=mismatches,
    )

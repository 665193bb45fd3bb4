"""Reference evaluation of query filters against documents.

Stores that cannot push a filter down to a database evaluate it here.
Supported: plain equality (array values match on membership), dotted
paths, and the operators in OPERATORS.
"""

from datetime import date, datetime
from typing import Any

from restforge.utils import MISSING, get_path

OPERATORS = ("$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin", "$exists")


def _normalize(value: Any) -> Any:
    """Make dates comparable with their ISO string form."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _like(actual: Any, expected: Any) -> Any:
    """Cast a query string value to the number it is compared against."""
    if isinstance(expected, str) and isinstance(actual, (int, float)) and not isinstance(actual, bool):
        try:
            return float(expected)
        except ValueError:
            return expected
    return expected


def _equals(actual: Any, expected: Any) -> bool:
    if actual is MISSING:
        return expected is None
    if isinstance(actual, list) and not isinstance(expected, list):
        return any(_normalize(item) == _normalize(_like(item, expected)) for item in actual)
    return _normalize(actual) == _normalize(_like(actual, expected))


def _compare(actual: Any, op: str, expected: Any) -> bool:
    if actual is MISSING or actual is None:
        return False
    left, right = _normalize(actual), _normalize(_like(actual, expected))
    try:
        if op == "$gt":
            return left > right
        if op == "$gte":
            return left >= right
        if op == "$lt":
            return left < right
        return left <= right
    except TypeError:
        return False


def _matches_condition(actual: Any, condition: Any) -> bool:
    is_operator_doc = (
        isinstance(condition, dict)
        and condition
        and all(k.startswith("$") for k in condition)
    )
    if not is_operator_doc:
        return _equals(actual, condition)

    for op, expected in condition.items():
        if op == "$eq":
            ok = _equals(actual, expected)
        elif op == "$ne":
            ok = not _equals(actual, expected)
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            ok = _compare(actual, op, expected)
        elif op == "$in":
            ok = any(_equals(actual, v) for v in expected)
        elif op == "$nin":
            ok = not any(_equals(actual, v) for v in expected)
        elif op == "$exists":
            ok = (actual is not MISSING) == bool(expected)
        else:
            raise ValueError(f"Unsupported query operator: {op}")
        if not ok:
            return False
    return True


def matches(record: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    """Check whether a document satisfies every condition of a filter."""
    for path, condition in (filter or {}).items():
        if not _matches_condition(get_path(record, path), condition):
            return False
    return True


def sort_key(record: dict[str, Any], field: str) -> tuple[int, Any]:
    """Sort key placing missing/None values first, like an ascending index."""
    value = get_path(record, field, None)
    if value is None:
        return (0, "")
    value = _normalize(value)
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (2, value)
    return (3, str(value))


def apply_sort(
    records: list[dict[str, Any]], sort: list[tuple[str, int]] | None
) -> list[dict[str, Any]]:
    """Stable multi-key sort: apply keys last to first."""
    result = list(records)
    for field, direction in reversed(sort or []):
        result.sort(key=lambda r: sort_key(r, field), reverse=direction < 0)
    return result

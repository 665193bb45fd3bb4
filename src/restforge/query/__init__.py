"""Query parameter validation, planning and reference filtering."""

from restforge.query.builder import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    NO_RESULTS,
    RESERVED_PARAMS,
    QueryPlan,
    build_query_plan,
    coerce_value,
    is_query_field_allowed,
    parse_sort,
    resolve_limit,
    resolve_page,
)
from restforge.query.filters import apply_sort, matches
from restforge.query.params import parse_query_params

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "NO_RESULTS",
    "RESERVED_PARAMS",
    "QueryPlan",
    "apply_sort",
    "build_query_plan",
    "coerce_value",
    "is_query_field_allowed",
    "matches",
    "parse_query_params",
    "parse_sort",
    "resolve_limit",
    "resolve_page",
]

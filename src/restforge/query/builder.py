"""Turn request parameters into a validated query plan.

build_query_plan() runs a fixed sequence: seed with the resource's default
params, reject anything outside the allow list, coerce boolean literals,
merge the resource's dynamic query filter, then resolve limit, page and
sort. Failures are APIErrors carrying the exact client-facing message.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from restforge.core.types import Actor
from restforge.errors import APIError

if TYPE_CHECKING:
    from restforge.router.options import ResourceOptions


# Parameters consumed by pagination; never treated as filters.
RESERVED_PARAMS = ("limit", "page")

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


class _NoResults:
    """Sentinel: the query filter decided this request sees nothing."""

    def __repr__(self) -> str:
        return "NO_RESULTS"


NO_RESULTS = _NoResults()


@dataclass(frozen=True)
class QueryPlan:
    """A validated list query.

    Attributes:
        filter: Conditions handed to the store as-is
        sort: (field, direction) pairs, direction 1 or -1
        limit: Page size, within [1, max_limit]
        skip: Records to skip, (page - 1) * limit
        page: The requested page, None when the client gave none
    """

    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    skip: int = 0
    page: int | None = None


def is_query_field_allowed(key: str, query_fields: tuple[str, ...] | list[str]) -> bool:
    """A dotted key is allowed when its full path or its root is listed."""
    if key in query_fields:
        return True
    return "." in key and key.split(".", 1)[0] in query_fields


def coerce_value(value: Any) -> Any:
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def parse_sort(spec: Any) -> list[tuple[str, int]]:
    """Parse a sort specification.

    Accepts "-created name" (leading "-" is descending), a mapping of
    field to "ascending"/"descending" (or 1/-1), or a list of pairs.
    """
    if not spec:
        return []
    if isinstance(spec, str):
        result = []
        for token in spec.split():
            if token.startswith("-"):
                result.append((token[1:], -1))
            else:
                result.append((token.lstrip("+"), 1))
        return result
    if isinstance(spec, dict):
        result = []
        for name, direction in spec.items():
            if direction in ("descending", "desc", -1):
                result.append((name, -1))
            elif direction in ("ascending", "asc", 1):
                result.append((name, 1))
            else:
                raise ValueError(f"Invalid sort direction for {name}: {direction}")
        return result
    return [(name, -1 if direction < 0 else 1) for name, direction in spec]


def resolve_limit(raw: Any, default_limit: int, max_limit: int) -> int:
    """Pick the page size: a positive integer from the client, else the default."""
    limit = default_limit
    if raw is not None:
        try:
            requested = int(raw)
        except (TypeError, ValueError):
            requested = 0
        if requested:
            limit = requested
    return max(1, min(limit, max_limit))


def resolve_page(raw: Any) -> int | None:
    """Parse the page parameter; must be an integer >= 1 when present.

    An empty value counts as absent.
    """
    if raw is None or raw == "":
        return None
    try:
        page = int(raw)
    except (TypeError, ValueError):
        page = 0
    if page < 1:
        raise APIError(f"Invalid page: {raw}", 400)
    return page


async def apply_query_filter(
    options: ResourceOptions,
    actor: Actor | None,
    query: dict[str, Any],
) -> dict[str, Any] | _NoResults:
    """Merge the resource's dynamic filter into the query."""
    if options.query_filter is None:
        return query
    try:
        extra = options.query_filter(actor, query)
        if inspect.isawaitable(extra):
            extra = await extra
    except APIError:
        raise
    except Exception as e:
        raise APIError(f"Query filter error: {e}", 400) from e

    if extra is None:
        return NO_RESULTS
    return {**query, **extra}


async def build_query_plan(
    params: dict[str, Any],
    options: ResourceOptions,
    actor: Actor | None = None,
) -> QueryPlan | _NoResults:
    """Build the plan for a list request, or NO_RESULTS."""
    query: dict[str, Any] = dict(options.default_query_params)

    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        if not is_query_field_allowed(key, options.query_fields):
            raise APIError(f"{key} is not allowed as a query param.", 400)
        query[key] = coerce_value(value)

    merged = await apply_query_filter(options, actor, query)
    if merged is NO_RESULTS:
        return NO_RESULTS

    limit = resolve_limit(params.get("limit"), options.default_limit, options.max_limit)
    page = resolve_page(params.get("page"))
    skip = (page - 1) * limit if page else 0

    return QueryPlan(
        filter=merged,
        sort=parse_sort(options.sort),
        limit=limit,
        skip=skip,
        page=page,
    )

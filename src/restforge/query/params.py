"""Parse flat query string pairs into a nested parameter mapping.

Bracket keys describe structured values:
    ?created[$gte]=2024-01-01&created[$lte]=2024-02-01
becomes
    {"created": {"$gte": "2024-01-01", "$lte": "2024-02-01"}}

A key given more than once collects its values into a list.
"""

import re
from collections.abc import Iterable
from typing import Any

_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")


def _split_key(key: str) -> list[str]:
    head, _, rest = key.partition("[")
    if not rest:
        return [key]
    return [head] + _BRACKET_RE.findall("[" + rest)


def _assign(target: dict[str, Any], parts: list[str], value: str) -> None:
    current = target
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt

    last = parts[-1]
    if last in current:
        existing = current[last]
        if isinstance(existing, list):
            existing.append(value)
        else:
            current[last] = [existing, value]
    else:
        current[last] = value


def parse_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Build a parameter mapping from (key, value) pairs."""
    params: dict[str, Any] = {}
    for key, value in items:
        parts = [p for p in _split_key(key) if p != ""]
        if not parts:
            continue
        _assign(params, parts, value)
    return params

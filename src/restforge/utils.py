"""Small helpers shared by stores, filters and the router."""

import secrets
from typing import Any

MISSING = object()


def new_object_id() -> str:
    """Generate a 24 character hex identifier for documents and sub-documents."""
    return secrets.token_hex(12)


def get_path(data: Any, path: str, default: Any = MISSING) -> Any:
    """Read a dotted path ("source.name") from nested dicts."""
    current = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Assign a dotted path, creating intermediate dicts as needed."""
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value

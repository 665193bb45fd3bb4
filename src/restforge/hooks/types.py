"""Hook system types.

- HookContext: runtime state passed to every hook function
- HookSet: the six optional lifecycle extension points of a resource
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any

from restforge.core.types import Actor, Operation

# Each hook may be a plain function or a coroutine function.
PreHook = Callable[..., Any]
PostHook = Callable[..., Any]

HOOK_NAMES = (
    "pre_create",
    "post_create",
    "pre_update",
    "post_update",
    "pre_delete",
    "post_delete",
)


@dataclass
class HookContext:
    """Runtime context passed to every hook function.

    Attributes:
        resource: Name of the model the resource exposes
        operation: The current operation (create, update, delete)
        actor: The requesting actor, None when anonymous
        original: Stored record before the change (update and delete only)
    """

    resource: str
    operation: Operation
    actor: Actor | None = None
    original: dict[str, Any] | None = None


@dataclass(frozen=True)
class HookSet:
    """Lifecycle extension points, all optional.

    pre_create(body, ctx) -> body | None
    post_create(record, ctx)
    pre_update(body, ctx) -> body | None
    post_update(record, body, ctx)
    pre_delete(record, ctx) -> Any | None
    post_delete(record, ctx)

    A pre hook returning None aborts the operation before anything is
    persisted. Hooks must not call back into the router's write path for
    the record being written.
    """

    pre_create: PreHook | None = None
    post_create: PostHook | None = None
    pre_update: PreHook | None = None
    post_update: PostHook | None = None
    pre_delete: PreHook | None = None
    post_delete: PostHook | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HookSet:
        """Create a HookSet from metadata, resolving hook names.

        Keys may be snake_case (pre_create) or camelCase (preCreate).
        """
        from restforge.hooks.registry import HookRegistry

        resolved: dict[str, Any] = {}
        for key, name in data.items():
            attr = _snake(key)
            if attr not in HOOK_NAMES:
                raise ValueError(f"Unknown hook point '{key}'")
            resolved[attr] = HookRegistry.get(name)
        return cls(**resolved)


def _snake(name: str) -> str:
    out = []
    for char in name:
        if char.isupper():
            out.append("_")
        out.append(char.lower())
    return "".join(out)

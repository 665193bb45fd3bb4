"""Permission rules and their evaluation.

A rule is a predicate ``(operation, actor, record=None) -> bool`` that may
also return an awaitable. Rules for one operation are AND-combined and the
evaluation defaults closed: an empty rule list denies.

When called without a record (the operation-level check made before any
fetch), a rule answers "can this possibly succeed for this actor" and
returns True unless it can decide without seeing the record.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from restforge.core.types import Actor, Operation, is_owner

logger = logging.getLogger(__name__)

PermissionRule = Callable[
    [Operation, "Actor | None", Any], "bool | Awaitable[bool]"
]

READ_OPERATIONS = (Operation.LIST, Operation.READ)


def IsAny(operation: Operation, actor: Actor | None = None, record: Any = None) -> bool:
    return True


def IsAdmin(operation: Operation, actor: Actor | None = None, record: Any = None) -> bool:
    return bool(actor and actor.admin)


def IsAuthenticated(
    operation: Operation, actor: Actor | None = None, record: Any = None
) -> bool:
    return actor is not None and actor.is_authenticated


def IsAuthenticatedOrReadOnly(
    operation: Operation, actor: Actor | None = None, record: Any = None
) -> bool:
    if actor is not None and actor.is_authenticated:
        return True
    return operation in READ_OPERATIONS


def IsOwner(operation: Operation, actor: Actor | None = None, record: Any = None) -> bool:
    # Without a record we can only say the operation might succeed.
    if record is None:
        return True
    if actor is None:
        return False
    if actor.admin:
        return True
    return is_owner(actor, record)


def IsOwnerOrReadOnly(
    operation: Operation, actor: Actor | None = None, record: Any = None
) -> bool:
    if record is None:
        return True
    if actor is not None and (actor.admin or is_owner(actor, record)):
        return True
    return operation in READ_OPERATIONS


PERMISSION_RULES: dict[str, PermissionRule] = {
    "IsAny": IsAny,
    "IsAdmin": IsAdmin,
    "IsAuthenticated": IsAuthenticated,
    "IsAuthenticatedOrReadOnly": IsAuthenticatedOrReadOnly,
    "IsOwner": IsOwner,
    "IsOwnerOrReadOnly": IsOwnerOrReadOnly,
}


def register_rule(name: str, rule: PermissionRule) -> None:
    """Make a custom rule available to resource metadata by name."""
    PERMISSION_RULES[name] = rule


def get_rule(name: str) -> PermissionRule:
    if name not in PERMISSION_RULES:
        raise ValueError(f"Permission rule '{name}' is not registered.")
    return PERMISSION_RULES[name]


def owner_query_filter(actor: Actor | None, query: dict[str, Any] | None = None) -> dict | None:
    """Query filter restricting lists to the actor's own records.

    Returns None (no results at all) for anonymous callers.
    """
    if actor is not None and actor.id:
        return {"ownerId": actor.id}
    return None


@dataclass(frozen=True)
class PermissionSet:
    """Rule lists for each operation. Unset operations deny."""

    list: tuple[PermissionRule, ...] = ()
    create: tuple[PermissionRule, ...] = ()
    read: tuple[PermissionRule, ...] = ()
    update: tuple[PermissionRule, ...] = ()
    delete: tuple[PermissionRule, ...] = ()

    def __post_init__(self) -> None:
        for op in Operation:
            object.__setattr__(self, op.value, tuple(getattr(self, op.value)))

    def for_operation(self, operation: Operation) -> tuple[PermissionRule, ...]:
        return getattr(self, operation.value)

    @classmethod
    def uniform(cls, *rules: PermissionRule) -> PermissionSet:
        """The same rules for every operation."""
        return cls(**{op.value: rules for op in Operation})


async def check_permissions(
    operation: Operation,
    rules: tuple[PermissionRule, ...] | list[PermissionRule],
    actor: Actor | None = None,
    record: Any = None,
) -> bool:
    """Evaluate rules in order; any False denies, no rules denies."""
    evaluated = False
    for rule in rules:
        result = rule(operation, actor, record)
        if inspect.isawaitable(result):
            result = await result
        if not result:
            logger.debug(
                "Permission %s denied %s for %s",
                getattr(rule, "__name__", rule),
                operation.value,
                actor.id if actor else None,
            )
            return False
        evaluated = True
    return evaluated

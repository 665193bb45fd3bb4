"""Actor resolution and permission rules."""

from restforge.auth.dependencies import authenticate
from restforge.auth.middleware import (
    ActorMiddleware,
    get_actor,
    header_actor_resolver,
)
from restforge.auth.permissions import (
    PERMISSION_RULES,
    IsAdmin,
    IsAny,
    IsAuthenticated,
    IsAuthenticatedOrReadOnly,
    IsOwner,
    IsOwnerOrReadOnly,
    PermissionRule,
    PermissionSet,
    check_permissions,
    get_rule,
    owner_query_filter,
    register_rule,
)

__all__ = [
    "ActorMiddleware",
    "IsAdmin",
    "IsAny",
    "IsAuthenticated",
    "IsAuthenticatedOrReadOnly",
    "IsOwner",
    "IsOwnerOrReadOnly",
    "PERMISSION_RULES",
    "PermissionRule",
    "PermissionSet",
    "authenticate",
    "check_permissions",
    "get_actor",
    "get_rule",
    "header_actor_resolver",
    "owner_query_filter",
    "register_rule",
]

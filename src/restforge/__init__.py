"""restforge - expose data models as permissioned, field-masked REST resources."""

from restforge.auth import (
    ActorMiddleware,
    IsAdmin,
    IsAny,
    IsAuthenticated,
    IsAuthenticatedOrReadOnly,
    IsOwner,
    IsOwnerOrReadOnly,
    PermissionSet,
    check_permissions,
    header_actor_resolver,
    owner_query_filter,
)
from restforge.core.types import Actor, Classification, Operation, classify
from restforge.errors import APIError, register_error_handlers
from restforge.hooks import HookContext, HookRegistry, HookSet, hook
from restforge.masking import FieldMask, LegacyTransformer
from restforge.models import FieldDefinition, ModelDefinition, ModelRegistry
from restforge.persistence import MemoryStore, SQLDocumentStore
from restforge.router import PopulatePath, ResourceOptions, ResourceRouter, build_api_router

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "Actor",
    "ActorMiddleware",
    "Classification",
    "FieldDefinition",
    "FieldMask",
    "HookContext",
    "HookRegistry",
    "HookSet",
    "IsAdmin",
    "IsAny",
    "IsAuthenticated",
    "IsAuthenticatedOrReadOnly",
    "IsOwner",
    "IsOwnerOrReadOnly",
    "LegacyTransformer",
    "MemoryStore",
    "ModelDefinition",
    "ModelRegistry",
    "Operation",
    "PermissionSet",
    "PopulatePath",
    "ResourceOptions",
    "ResourceRouter",
    "SQLDocumentStore",
    "build_api_router",
    "check_permissions",
    "classify",
    "header_actor_resolver",
    "hook",
    "owner_query_filter",
    "register_error_handlers",
]

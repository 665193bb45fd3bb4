"""Resource configuration: everything a ResourceRouter is built from."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from restforge.auth.permissions import PermissionSet
from restforge.hooks.types import HookSet
from restforge.models.variants import DEFAULT_DISCRIMINATOR_KEY
from restforge.query.builder import DEFAULT_LIMIT, MAX_LIMIT


@dataclass(frozen=True)
class PopulatePath:
    """A reference field to expand in responses.

    Attributes:
        path: Field (or dotted path) holding a reference id or list of ids
        fields: Fields to keep on the referenced records. When every entry
            starts with "-" it is a block list instead.
    """

    path: str
    fields: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.fields is not None:
            object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class ResourceOptions:
    """Immutable definition of one exposed resource.

    Attributes:
        permissions: Rule lists per operation (unset operations deny)
        allow_anonymous: Admit requests without an authenticated actor
        query_fields: Filterable fields for list requests
        query_filter: (actor, query) -> extra conditions | None, sync or async.
            None means the actor sees no results.
        default_query_params: Conditions every list starts from
        sort: Sort order, e.g. "-created" or {"created": "descending"}
        default_limit: Page size when the client gives none
        max_limit: Upper bound on the page size
        populate_paths: Reference fields expanded in responses
        transformer: FieldMask or LegacyTransformer
        serialize: (data, operation, actor) -> response data, replaces the
            default serializer
        hooks: Lifecycle hooks
        discriminator_key: Body key naming the variant
    """

    permissions: PermissionSet = field(default_factory=PermissionSet)
    allow_anonymous: bool = False
    query_fields: tuple[str, ...] = ()
    query_filter: Callable[..., Any] | None = None
    default_query_params: dict[str, Any] = field(default_factory=dict)
    sort: Any = None
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT
    populate_paths: tuple[PopulatePath, ...] = ()
    transformer: Any = None
    serialize: Callable[..., Any] | None = None
    hooks: HookSet = field(default_factory=HookSet)
    discriminator_key: str = DEFAULT_DISCRIMINATOR_KEY

    def __post_init__(self) -> None:
        object.__setattr__(self, "query_fields", tuple(self.query_fields))
        object.__setattr__(
            self,
            "populate_paths",
            tuple(
                p if isinstance(p, PopulatePath) else PopulatePath(p)
                for p in self.populate_paths
            ),
        )
        if self.default_limit < 1 or self.max_limit < 1:
            raise ValueError("default_limit and max_limit must be positive")

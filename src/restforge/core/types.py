"""Core types shared by every layer of the resource router.

- Operation: the five primary resource operations
- Actor: the caller attached to a request by the host's authentication
- Classification: the trust tier used to pick field masks
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Operation(Enum):
    """The resource operation being performed."""

    LIST = "list"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Classification(Enum):
    """Trust tier of an actor relative to one record.

    ADMIN: actor carries the admin flag
    OWNER: actor id matches the record's ownerId
    AUTHENTICATED: any other identified, non-anonymous actor
    ANONYMOUS: no actor, or an anonymous one
    """

    ADMIN = "admin"
    OWNER = "owner"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Actor:
    """The requesting principal.

    Attributes:
        id: Identifier of the user, compared as a string against ownerId
        admin: Whether the actor has administrative rights
        is_anonymous: True for anonymous sessions that still carry an id
    """

    id: str | None = None
    admin: bool = False
    is_anonymous: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id) and not self.is_anonymous


def owner_id_of(record: Any) -> str | None:
    """Return the owner id of a record, unwrapping a populated owner."""
    if not isinstance(record, dict):
        return None
    owner = record.get("ownerId")
    if isinstance(owner, dict):
        owner = owner.get("_id", owner.get("id"))
    if owner is None:
        return None
    return str(owner)


def is_owner(actor: Actor | None, record: Any) -> bool:
    """Check whether the actor owns the record."""
    if actor is None or not actor.id:
        return False
    owner = owner_id_of(record)
    return owner is not None and owner == str(actor.id)


def classify(actor: Actor | None, record: Any = None) -> Classification:
    """Derive the classification of an actor, optionally against a record.

    Recomputed on every call; nothing is cached across requests.
    """
    if actor is not None and actor.admin:
        return Classification.ADMIN
    if record is not None and is_owner(actor, record):
        return Classification.OWNER
    if actor is not None and actor.is_authenticated:
        return Classification.AUTHENTICATED
    return Classification.ANONYMOUS

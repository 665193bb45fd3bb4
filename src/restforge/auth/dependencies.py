"""Authentication gate used by every resource route."""

from restforge.core.types import Actor
from restforge.errors import APIError


def authenticate(actor: Actor | None, allow_anonymous: bool) -> Actor | None:
    """Admit the actor, or reject an anonymous one when anonymity is off.

    Raises:
        APIError 401 when no authenticated actor is present and the
        resource does not allow anonymous access
    """
    if allow_anonymous:
        return actor
    if actor is None or not actor.id:
        raise APIError("Unauthorized", 401)
    return actor

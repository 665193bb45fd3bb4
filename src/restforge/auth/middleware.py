"""Actor resolution middleware for FastAPI.

Authentication itself belongs to the host application. The host supplies a
resolver that inspects a request and returns the Actor (or None for an
anonymous caller); this middleware stores the result on request.state so
every resource route sees the same actor.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from restforge.core.types import Actor

logger = logging.getLogger(__name__)

ActorResolver = Callable[[Request], "Actor | None | Awaitable[Actor | None]"]


class ActorMiddleware(BaseHTTPMiddleware):
    """Middleware that attaches the caller's Actor to request.state.actor.

    The middleware does NOT reject anonymous requests; routers decide that
    according to their allow_anonymous setting.
    """

    def __init__(self, app, resolver: ActorResolver):
        """Initialize middleware with an actor resolver.

        Args:
            app: The ASGI application
            resolver: Callable returning the Actor for a request, or None
        """
        super().__init__(app)
        self._resolver = resolver

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.actor = None

        actor = self._resolver(request)
        if inspect.isawaitable(actor):
            actor = await actor
        request.state.actor = actor

        return await call_next(request)


def header_actor_resolver(request: Request) -> Actor | None:
    """Development resolver reading the actor from request headers.

    X-Actor-Id: the actor id (absent means anonymous)
    X-Actor-Admin: "true"/"1" for admins
    X-Actor-Anonymous: "true"/"1" for anonymous sessions carrying an id
    """
    actor_id = request.headers.get("X-Actor-Id")
    if not actor_id:
        return None
    truthy = ("1", "true", "yes")
    return Actor(
        id=actor_id,
        admin=request.headers.get("X-Actor-Admin", "").lower() in truthy,
        is_anonymous=request.headers.get("X-Actor-Anonymous", "").lower() in truthy,
    )


def get_actor(request: Request) -> Actor | None:
    """Get the actor stored on the request by ActorMiddleware.

    Args:
        request: The FastAPI/Starlette request

    Returns:
        Actor if one was resolved, None otherwise
    """
    return getattr(request.state, "actor", None)

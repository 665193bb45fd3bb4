"""API errors rendered as JSON:API style error objects.

Every failure the router reports to a client is an APIError. The router
raises them at the point of failure with the user-facing title; the
exception handler installed by register_error_handlers() turns them into
JSON responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """An error with an HTTP status and a client-displayable title.

    Attributes:
        title: Human-readable summary, shown verbatim to clients
        status: HTTP status code, 400-599 (anything else becomes 500)
        code: Application-specific error code
        detail: Explanation specific to this occurrence
        source: Pointer/parameter/header that caused the error
        meta: Non-standard meta information (form field errors go in meta["fields"])
        id: Identifier for this occurrence
        links: About/type links
        disable_external_tracking: Keep this error out of external error reporting
    """

    def __init__(
        self,
        title: str,
        status: int = 500,
        *,
        code: str | None = None,
        detail: str | None = None,
        source: dict[str, str] | None = None,
        meta: dict[str, Any] | None = None,
        fields: dict[str, str] | None = None,
        id: str | None = None,
        links: dict[str, str] | None = None,
        disable_external_tracking: bool = False,
    ):
        super().__init__(f"{title}: {detail}" if detail else title)
        if status < 400 or status > 599:
            logger.error("Invalid APIError status code: %s, using 500", status)
            status = 500
        self.title = title
        self.status = status
        self.code = code
        self.detail = detail
        self.source = source
        self.meta = dict(meta or {})
        if fields:
            self.meta["fields"] = fields
        self.id = id
        self.links = links
        self.disable_external_tracking = disable_external_tracking
        logger.error("APIError(%s): %s %s", status, title, detail or "")

    def to_dict(self) -> dict[str, Any]:
        """Wire body for this error. Unset optional members are omitted."""
        body: dict[str, Any] = {
            "title": self.title,
            "message": self.title,
            "status": self.status,
        }
        optional = {
            "id": self.id,
            "links": self.links,
            "code": self.code,
            "detail": self.detail,
            "source": self.source,
            "meta": self.meta or None,
        }
        body.update({k: v for k, v in optional.items() if v is not None})
        return body


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError raised anywhere in a route."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    """Install the APIError handler on an application."""
    app.add_exception_handler(APIError, api_error_handler)

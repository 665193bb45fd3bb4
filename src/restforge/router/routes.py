"""FastAPI routes for a ResourceRouter."""

import json
from typing import Any

from fastapi import APIRouter, Body, Request, Response
from pydantic import BaseModel

from restforge.auth.middleware import get_actor
from restforge.errors import APIError
from restforge.query.params import parse_query_params
from restforge.router.engine import ResourceRouter


class RecordEnvelope(BaseModel):
    """Response body for single-record operations."""

    data: Any = None


class ListEnvelope(BaseModel):
    """Response body for list operations."""

    data: list[Any]
    more: bool
    page: int | None = None
    limit: int
    total: int


async def _optional_body(request: Request) -> Any:
    """Parse a JSON body that may be absent (DELETE requests)."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise APIError(f"Invalid JSON body: {e}", 400) from e


def build_api_router(resource: ResourceRouter) -> APIRouter:
    """Create the HTTP routes for one resource.

    Array routes are mounted only when the model declares array fields.
    """
    router = APIRouter()

    @router.get("/", response_model=ListEnvelope)
    async def list_records(request: Request):
        params = parse_query_params(request.query_params.multi_items())
        return await resource.list(params, get_actor(request))

    @router.post("/", status_code=201, response_model=RecordEnvelope)
    async def create_record(request: Request, body: Any = Body(None)):
        return await resource.create(body, get_actor(request))

    @router.get("/{id}", response_model=RecordEnvelope)
    async def read_record(id: str, request: Request):
        return await resource.read(id, get_actor(request))

    @router.put("/{id}")
    async def put_record(id: str, request: Request):
        resource.put(id, get_actor(request))

    @router.patch("/{id}", response_model=RecordEnvelope)
    async def update_record(id: str, request: Request, body: Any = Body(None)):
        return await resource.update(id, body, get_actor(request))

    @router.delete("/{id}", status_code=204)
    async def delete_record(id: str, request: Request):
        body = await _optional_body(request)
        await resource.delete(id, get_actor(request), body)
        return Response(status_code=204)

    if not resource.model.array_fields:
        return router

    @router.post("/{id}/{field}", response_model=RecordEnvelope)
    async def add_item(id: str, field: str, request: Request, body: Any = Body(None)):
        return await resource.add_item(id, field, body, get_actor(request))

    @router.patch("/{id}/{field}/{item_id}", response_model=RecordEnvelope)
    async def update_item(
        id: str, field: str, item_id: str, request: Request, body: Any = Body(None)
    ):
        return await resource.update_item(id, field, item_id, body, get_actor(request))

    @router.delete("/{id}/{field}/{item_id}", response_model=RecordEnvelope)
    async def remove_item(id: str, field: str, item_id: str, request: Request):
        body = await _optional_body(request)
        return await resource.remove_item(id, field, item_id, get_actor(request), body)

    return router

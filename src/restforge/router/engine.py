"""The resource router engine.

One ResourceRouter exposes one model. Every operation runs the same
pipeline, short-circuiting with an APIError at the first failing step:

    authenticate -> resolve variant -> operation-level permission
    -> [read/update/delete: fetch by id, 404, object-level permission]
    -> write mask (create/update) -> pre hook -> persist
    -> populate -> post hook -> serialize

Operation-level denials are 405 for writes and 403 for reads; object-level
denials and write-mask failures are 403.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from restforge.auth.dependencies import authenticate
from restforge.auth.permissions import READ_OPERATIONS, check_permissions
from restforge.core.types import Actor, Operation
from restforge.errors import APIError
from restforge.hooks.service import HookService
from restforge.hooks.types import HookContext
from restforge.masking.serialize import run_transform, serialize_response
from restforge.models.definition import (
    ModelDefinition,
    SchemaValidationError,
    VariantNotFoundError,
)
from restforge.models.variants import resolve_variant, variant_mismatch
from restforge.persistence.adapter import DocumentStore
from restforge.persistence.memory import MemoryStore
from restforge.query.builder import NO_RESULTS, build_query_plan, resolve_limit, resolve_page
from restforge.router import arrays
from restforge.router.options import ResourceOptions
from restforge.router.populate import populate
from restforge.utils import set_path

logger = logging.getLogger(__name__)

STAGES = {
    Operation.CREATE: "Create",
    Operation.UPDATE: "Update",
    Operation.DELETE: "Delete",
}


def _actor_id(actor: Actor | None) -> str | None:
    return actor.id if actor else None


def merge_body(record: dict[str, Any], body: dict[str, Any]) -> dict[str, Any]:
    """Return a new record with the body's keys applied.

    Dotted keys ("address.city") set nested values. The stored record is
    never mutated.
    """
    merged = copy.deepcopy(record)
    for key, value in body.items():
        if "." in key:
            set_path(merged, key, copy.deepcopy(value))
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ResourceRouter:
    """Exposes list/create/read/update/delete and array operations on a model.

    Args:
        model: The base model of the resource
        options: Resource configuration
        store: Where records live; an in-memory store when omitted
    """

    def __init__(
        self,
        model: ModelDefinition,
        options: ResourceOptions | None = None,
        store: DocumentStore | None = None,
    ):
        options = options or ResourceOptions()
        if model.base is not None:
            raise ValueError(
                f"Resource must be built on a base model, '{model.name}' is a variant"
            )
        if options.discriminator_key != model.discriminator_key:
            raise ValueError(
                f"Discriminator key '{options.discriminator_key}' does not match "
                f"model '{model.name}' key '{model.discriminator_key}'"
            )
        self.model = model
        self.options = options
        self.store = store if store is not None else MemoryStore()
        self.hook_service = HookService()

    @property
    def name(self) -> str:
        return self.model.name

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _authenticate(self, actor: Actor | None) -> Actor | None:
        return authenticate(actor, self.options.allow_anonymous)

    def _resolve(self, body: Any) -> ModelDefinition:
        try:
            return resolve_variant(self.model, body, self.options.discriminator_key)
        except VariantNotFoundError as e:
            raise APIError(str(e), 500) from e

    async def _check_operation(self, operation: Operation, actor: Actor | None) -> None:
        """Operation-level permission check, made before any record is fetched."""
        rules = self.options.permissions.for_operation(operation)
        if await check_permissions(operation, rules, actor):
            return
        raise APIError(
            f"Access to {operation.name} on {self.name} denied for {_actor_id(actor)}",
            403 if operation in READ_OPERATIONS else 405,
        )

    async def _fetch(
        self,
        operation: Operation,
        id: str,
        actor: Actor | None,
        body: Any = None,
    ) -> dict[str, Any]:
        """Fetch a record and run the object-level permission check."""
        not_found = f"Document {id} not found for model {self.name}"
        record = await self.store.get(self.model, id)
        if record is None:
            raise APIError(not_found, 404)

        if operation in (Operation.UPDATE, Operation.DELETE) and variant_mismatch(
            record, body, self.options.discriminator_key
        ):
            raise APIError(not_found, 404)

        soft_delete = self.model.soft_delete_field
        if soft_delete and record.get(soft_delete) is True:
            raise APIError(not_found, 404, meta={"deleted": "true"})

        rules = self.options.permissions.for_operation(operation)
        if not await check_permissions(operation, rules, actor, record):
            raise APIError(
                f"Access to {operation.name} on {self.name}:{id} denied for {_actor_id(actor)}",
                403,
            )
        return record

    def _mask(
        self,
        body: dict[str, Any],
        operation: Operation,
        actor: Actor | None,
        record: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run the transformer on a body. The discriminator key bypasses it."""
        key = self.options.discriminator_key
        variant = body.get(key)
        writable = {k: v for k, v in body.items() if k != key}
        try:
            result = run_transform(self.options.transformer, writable, operation, actor, record)
        except APIError:
            raise
        except PermissionError as e:
            raise APIError(str(e), 403) from e
        except Exception as e:
            raise APIError(str(e), 400) from e

        if result is None:
            raise APIError(f"{STAGES[operation]} not allowed", 403)
        if variant is not None:
            result = {**result, key: variant}
        return result

    def _context(
        self,
        operation: Operation,
        actor: Actor | None,
        original: dict[str, Any] | None = None,
    ) -> HookContext:
        return HookContext(
            resource=self.name,
            operation=operation,
            actor=actor,
            original=copy.deepcopy(original) if original is not None else None,
        )

    async def _populate(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not self.options.populate_paths:
            return records
        try:
            return await populate(records, self.model, self.options.populate_paths, self.store)
        except ValueError as e:
            raise APIError(f"Populate error: {e}", 400) from e

    async def _serialize(self, data: Any, operation: Operation, actor: Actor | None) -> Any:
        return await serialize_response(data, operation, actor, self.options)

    async def _replace(
        self, model: ModelDefinition, id: str, record: dict[str, Any]
    ) -> dict[str, Any]:
        try:
            updated = await self.store.replace(model, id, record)
        except SchemaValidationError as e:
            raise APIError(str(e), 400) from e
        if updated is None:
            raise APIError(f"Document {id} not found for model {self.name}", 404)
        return updated

    async def _write_update(
        self,
        model: ModelDefinition,
        id: str,
        record: dict[str, Any],
        body: dict[str, Any],
        actor: Actor | None,
    ) -> dict[str, Any]:
        """pre_update -> merge and replace -> populate -> post_update -> serialize."""
        hooks = self.options.hooks
        ctx = self._context(Operation.UPDATE, actor, original=record)
        body = await self.hook_service.run_pre("Update", hooks.pre_update, body, ctx)

        updated = await self._replace(model, id, merge_body(record, body))
        [updated] = await self._populate([updated])

        await self.hook_service.run_post("Update", hooks.post_update, updated, body, ctx)
        return {"data": await self._serialize(updated, Operation.UPDATE, actor)}

    @staticmethod
    def _require_object(body: Any, operation: Operation) -> dict[str, Any]:
        if not isinstance(body, dict):
            raise APIError(f"{STAGES[operation]} body must be a JSON object", 400)
        return body

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list(
        self, params: dict[str, Any] | None = None, actor: Actor | None = None
    ) -> dict[str, Any]:
        """List records: {data, more, page, limit, total}."""
        params = params or {}
        actor = self._authenticate(actor)
        await self._check_operation(Operation.LIST, actor)

        plan = await build_query_plan(params, self.options, actor)
        if plan is NO_RESULTS:
            return {
                "data": [],
                "more": False,
                "page": resolve_page(params.get("page")),
                "limit": resolve_limit(
                    params.get("limit"), self.options.default_limit, self.options.max_limit
                ),
                "total": 0,
            }

        conditions = dict(plan.filter)
        soft_delete = self.model.soft_delete_field
        if soft_delete and soft_delete not in conditions:
            conditions[soft_delete] = {"$ne": True}

        try:
            records = await self.store.find(
                self.model, conditions, plan.sort, plan.skip, plan.limit + 1
            )
            total = await self.store.count(self.model, conditions)
        except ValueError as e:
            raise APIError(f"List error: {e}", 400) from e

        more = len(records) > plan.limit
        records = records[: plan.limit]
        if more and plan.page is None:
            logger.warning(
                "More than %d results returned for %s without pagination, "
                "data may be silently truncated",
                plan.limit,
                self.name,
            )

        records = await self._populate(records)
        return {
            "data": await self._serialize(records, Operation.LIST, actor),
            "more": more,
            "page": plan.page,
            "limit": plan.limit,
            "total": total,
        }

    async def create(self, body: Any, actor: Actor | None = None) -> dict[str, Any]:
        """Create a record: {data}."""
        actor = self._authenticate(actor)
        body = self._require_object(body, Operation.CREATE)
        model = self._resolve(body)
        await self._check_operation(Operation.CREATE, actor)

        body = self._mask(body, Operation.CREATE, actor)

        hooks = self.options.hooks
        ctx = self._context(Operation.CREATE, actor)
        body = await self.hook_service.run_pre("Create", hooks.pre_create, body, ctx)

        try:
            record = await self.store.create(model, body)
        except ValueError as e:
            raise APIError(str(e), 400) from e
        [record] = await self._populate([record])

        await self.hook_service.run_post("Create", hooks.post_create, record, ctx)
        return {"data": await self._serialize(record, Operation.CREATE, actor)}

    async def read(self, id: str, actor: Actor | None = None) -> dict[str, Any]:
        """Read one record: {data}."""
        actor = self._authenticate(actor)
        await self._check_operation(Operation.READ, actor)
        record = await self._fetch(Operation.READ, id, actor)
        [record] = await self._populate([record])
        return {"data": await self._serialize(record, Operation.READ, actor)}

    async def update(self, id: str, body: Any, actor: Actor | None = None) -> dict[str, Any]:
        """Patch a record: {data}.

        The body is merged into a copy of the stored record, which is then
        written back with a single replace.
        """
        actor = self._authenticate(actor)
        body = self._require_object(body, Operation.UPDATE)
        model = self._resolve(body)
        await self._check_operation(Operation.UPDATE, actor)
        record = await self._fetch(Operation.UPDATE, id, actor, body)

        body = self._mask(body, Operation.UPDATE, actor, record)
        return await self._write_update(model, id, record, body, actor)

    async def delete(self, id: str, actor: Actor | None = None, body: Any = None) -> None:
        """Delete a record, softly when the model declares a deleted flag.

        ``body`` only carries the discriminator key for variant records.
        """
        actor = self._authenticate(actor)
        model = self._resolve(body)
        await self._check_operation(Operation.DELETE, actor)
        record = await self._fetch(Operation.DELETE, id, actor, body)

        hooks = self.options.hooks
        ctx = self._context(Operation.DELETE, actor, original=record)
        await self.hook_service.run_pre("Delete", hooks.pre_delete, copy.deepcopy(record), ctx)

        soft_delete = self.model.soft_delete_field
        if soft_delete:
            await self._replace(model, id, {**record, soft_delete: True})
        elif not await self.store.delete(model, id):
            raise APIError(f"Document {id} not found for model {self.name}", 404)

        await self.hook_service.run_post("Delete", hooks.post_delete, record, ctx)

    def put(self, id: str, actor: Actor | None = None) -> None:
        """Reject a full replace; records change through PATCH only."""
        self._authenticate(actor)
        raise APIError("PUT is not supported.", 400)

    async def add_item(
        self, id: str, field: str, body: Any, actor: Actor | None = None
    ) -> dict[str, Any]:
        """Append an element to an array field."""
        return await arrays.run_array_operation(self, arrays.ADD, id, field, body, actor)

    async def update_item(
        self, id: str, field: str, item_id: str, body: Any, actor: Actor | None = None
    ) -> dict[str, Any]:
        """Replace (scalar) or merge into (sub-document) one array element."""
        return await arrays.run_array_operation(
            self, arrays.UPDATE, id, field, body, actor, item_id
        )

    async def remove_item(
        self,
        id: str,
        field: str,
        item_id: str,
        actor: Actor | None = None,
        body: Any = None,
    ) -> dict[str, Any]:
        """Remove one array element."""
        return await arrays.run_array_operation(
            self, arrays.REMOVE, id, field, body, actor, item_id
        )

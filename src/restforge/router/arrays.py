"""Nested array operations: add, update and remove one element of an array field.

Scalar arrays (tags) locate elements by value, sub-document arrays
(categories) by their "_id". The parent record is written back whole
through the same update path as a PATCH, so the write mask and the update
hooks apply.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from restforge.core.types import Actor, Operation
from restforge.errors import APIError
from restforge.models.definition import PRIMARY_KEY, FieldDefinition
from restforge.utils import new_object_id

if TYPE_CHECKING:
    from restforge.router.engine import ResourceRouter

ADD = "add"
UPDATE = "update"
REMOVE = "remove"


def check_array_body(body: Any, field: str, discriminator_key: str) -> Any:
    """Return the element value from a body shaped {field: value}.

    Raises:
        APIError: 400 when the body has any other shape
    """
    keys = list(body.keys()) if isinstance(body, dict) else []
    if [k for k in keys if k != discriminator_key] != [field]:
        raise APIError(
            "Malformed body, array operations should have a single, top level key, "
            f"got: {', '.join(keys)}",
            400,
        )
    return body[field]


def find_item(items: list[Any], fdef: FieldDefinition, item_id: str) -> int | None:
    """Index of the element addressed by item_id, or None."""
    for index, item in enumerate(items):
        if fdef.is_subdocument_array:
            if isinstance(item, dict) and str(item.get(PRIMARY_KEY)) == str(item_id):
                return index
        elif item == item_id or str(item) == str(item_id):
            return index
    return None


def apply_array_operation(
    items: list[Any],
    fdef: FieldDefinition,
    operation: str,
    value: Any = None,
    item_id: str | None = None,
) -> list[Any]:
    """Return a new list with the operation applied. ``items`` is not modified.

    Raises:
        APIError: 404 when item_id matches no element, 400 for a
            non-object sub-document
    """
    result = copy.deepcopy(items)

    if fdef.is_subdocument_array and operation != REMOVE and not isinstance(value, dict):
        raise APIError(f"{fdef.name} elements must be objects", 400)

    if operation == ADD:
        if fdef.is_subdocument_array:
            value = {**value, PRIMARY_KEY: value.get(PRIMARY_KEY) or new_object_id()}
        result.append(value)
        return result

    index = find_item(result, fdef, item_id)
    if index is None:
        raise APIError(f"Could not find {fdef.name}/{item_id}", 404)

    if operation == UPDATE:
        if fdef.is_subdocument_array:
            result[index] = {**result[index], **value, PRIMARY_KEY: result[index][PRIMARY_KEY]}
        else:
            result[index] = value
    elif operation == REMOVE:
        del result[index]
    else:
        raise APIError(f"Invalid array operation: {operation}", 400)
    return result


async def run_array_operation(
    router: ResourceRouter,
    operation: str,
    id: str,
    field: str,
    body: Any,
    actor: Actor | None,
    item_id: str | None = None,
) -> dict[str, Any]:
    """Run one array operation through the router's update pipeline."""
    actor = router._authenticate(actor)
    key = router.options.discriminator_key
    model = router._resolve(body)
    await router._check_operation(Operation.UPDATE, actor)

    fdef = model.get_field(field)
    if fdef is None or not fdef.is_array:
        raise APIError(f"Could not find array field {field}", 404)

    record = await router._fetch(Operation.UPDATE, id, actor, body)

    # The body is only inspected once the caller may update this record.
    value = None
    if operation != REMOVE:
        value = check_array_body(body, field, key)
    items = record.get(field) or []
    changed = {field: apply_array_operation(items, fdef, operation, value, item_id)}
    if isinstance(body, dict) and body.get(key):
        changed[key] = body[key]

    changed = router._mask(changed, Operation.UPDATE, actor, record)
    return await router._write_update(model, id, record, changed, actor)

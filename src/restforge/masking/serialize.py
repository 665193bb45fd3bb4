"""Turning stored records into response data, and running transformers."""

from __future__ import annotations

import copy
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from restforge.core.types import Actor, Operation
from restforge.errors import APIError

if TYPE_CHECKING:
    from restforge.router.options import ResourceOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyTransformer:
    """A transform/serialize pair of plain callables.

    transform(body, operation, actor) -> body
    serialize(record, actor) -> record

    Prefer a FieldMask plus pre hooks; the transform half is deprecated.
    """

    transform: Callable[[Any, Operation, Actor | None], Any] | None = None
    serialize: Callable[[dict[str, Any], Actor | None], Any] | None = None


def run_transform(
    transformer: Any,
    body: Any,
    operation: Operation,
    actor: Actor | None,
    record: dict[str, Any] | None = None,
) -> Any:
    """Pass a create/update body through the resource transformer."""
    if transformer is None:
        return body
    if isinstance(transformer, LegacyTransformer):
        if transformer.transform is None:
            return body
        logger.warning(
            "transform functions are deprecated, use pre_create/pre_update hooks instead"
        )
        if isinstance(body, list):
            return [transformer.transform(item, operation, actor) for item in body]
        return transformer.transform(body, operation, actor)
    return transformer.transform(body, operation, actor, record)


def _plain(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize_record(
    record: dict[str, Any],
    actor: Actor | None,
    transformer: Any = None,
) -> dict[str, Any] | None:
    """Default serializer for one record.

    Works on a deep copy: adds ``id`` from ``_id``, renders dates as ISO
    strings, then applies the transformer's serialize half if it has one.
    """
    data = _plain(copy.deepcopy(record))
    if "_id" in data:
        data["id"] = str(data["_id"])

    serialize = getattr(transformer, "serialize", None)
    if serialize is None:
        return data
    return serialize(data, actor)


async def serialize_response(
    data: dict[str, Any] | list[dict[str, Any]],
    operation: Operation,
    actor: Actor | None,
    options: ResourceOptions,
) -> Any:
    """Serialize one record or a list for the response envelope.

    A resource-level ``serialize(data, operation, actor)`` replaces the
    default per-record serializer entirely.
    """
    try:
        if options.serialize is not None:
            result = options.serialize(data, operation, actor)
            if inspect.isawaitable(result):
                result = await result
            return result
        if isinstance(data, list):
            return [serialize_record(r, actor, options.transformer) for r in data]
        return serialize_record(data, actor, options.transformer)
    except APIError:
        raise
    except Exception as e:
        raise APIError(f"Error serializing {operation.value} response: {e}", 400) from e

"""Expansion of reference fields in response records."""

import logging
from typing import Any

from restforge.models.definition import PRIMARY_KEY, ModelDefinition
from restforge.models.registry import ModelRegistry
from restforge.persistence.adapter import DocumentStore
from restforge.router.options import PopulatePath
from restforge.utils import MISSING, get_path, set_path

logger = logging.getLogger(__name__)


def referenced_model(model: ModelDefinition, path: PopulatePath) -> ModelDefinition:
    """Look up the model a populate path points at.

    Raises:
        ValueError: The path is not a reference field, or its model is unknown
    """
    fdef = model.get_field(path.path)
    if fdef is None or not fdef.ref:
        raise ValueError(f"Cannot populate {model.name}.{path.path}: not a reference field")
    return ModelRegistry.get(fdef.ref)


def select_fields(record: dict[str, Any], fields: tuple[str, ...] | None) -> dict[str, Any]:
    """Restrict a populated record to an allow list or a "-" block list."""
    if not fields:
        return record
    if all(f.startswith("-") for f in fields):
        blocked = {f[1:] for f in fields}
        return {k: v for k, v in record.items() if k not in blocked}
    selected = {PRIMARY_KEY: record[PRIMARY_KEY]} if PRIMARY_KEY in record else {}
    for name in fields:
        value = get_path(record, name)
        if value is not MISSING:
            set_path(selected, name, value)
    return selected


async def populate(
    records: list[dict[str, Any]],
    model: ModelDefinition,
    paths: tuple[PopulatePath, ...],
    store: DocumentStore,
) -> list[dict[str, Any]]:
    """Replace reference ids with the referenced records, in place.

    Ids with no matching record are left as they are.
    """
    for path in paths:
        target = referenced_model(model, path)
        ids: list[str] = []
        for record in records:
            value = get_path(record, path.path, None)
            if isinstance(value, list):
                ids.extend(str(v) for v in value if not isinstance(v, dict))
            elif value is not None and not isinstance(value, dict):
                ids.append(str(value))
        if not ids:
            continue

        found = await store.get_many(target, list(dict.fromkeys(ids)))
        by_id = {str(doc[PRIMARY_KEY]): select_fields(doc, path.fields) for doc in found}
        logger.debug("Populated %d of %d %s references", len(by_id), len(ids), path.path)

        for record in records:
            value = get_path(record, path.path, None)
            if isinstance(value, list):
                set_path(record, path.path, [by_id.get(str(v), v) for v in value])
            elif value is not None and not isinstance(value, dict):
                set_path(record, path.path, by_id.get(str(value), value))
    return records

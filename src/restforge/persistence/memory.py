"""In-process document store.

Keeps one ordered dict of documents per base model. Filters are evaluated
with restforge.query.filters, the same evaluator the SQL store uses.
"""

import copy
from typing import Any

from restforge.models.definition import PRIMARY_KEY, ModelDefinition
from restforge.query.filters import apply_sort, matches
from restforge.utils import new_object_id


def _variant_filter(model: ModelDefinition) -> dict[str, Any]:
    if model.variant_name:
        return {model.discriminator_key: model.variant_name}
    return {}


class MemoryStore:
    """DocumentStore keeping documents in memory. Used for tests and demos."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, model: ModelDefinition) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(model.collection, {})

    async def get(self, model: ModelDefinition, id: str) -> dict[str, Any] | None:
        doc = self._collection(model).get(str(id))
        return copy.deepcopy(doc) if doc is not None else None

    async def get_many(self, model: ModelDefinition, ids: list[str]) -> list[dict[str, Any]]:
        docs = self._collection(model)
        return [copy.deepcopy(docs[str(i)]) for i in ids if str(i) in docs]

    async def find(
        self,
        model: ModelDefinition,
        filter: dict[str, Any] | None = None,
        sort: list[tuple[str, int]] | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        conditions = {**(filter or {}), **_variant_filter(model)}
        found = [d for d in self._collection(model).values() if matches(d, conditions)]
        found = apply_sort(found, sort)
        end = None if limit is None else skip + limit
        return [copy.deepcopy(d) for d in found[skip:end]]

    async def count(self, model: ModelDefinition, filter: dict[str, Any] | None = None) -> int:
        conditions = {**(filter or {}), **_variant_filter(model)}
        return sum(1 for d in self._collection(model).values() if matches(d, conditions))

    async def create(self, model: ModelDefinition, data: dict[str, Any]) -> dict[str, Any]:
        doc = model.clean(data, create=True)
        doc[PRIMARY_KEY] = str(doc.get(PRIMARY_KEY) or new_object_id())
        collection = self._collection(model)
        if doc[PRIMARY_KEY] in collection:
            raise ValueError(f"Duplicate {PRIMARY_KEY} {doc[PRIMARY_KEY]} in {model.collection}")
        collection[doc[PRIMARY_KEY]] = doc
        return copy.deepcopy(doc)

    async def replace(
        self, model: ModelDefinition, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        collection = self._collection(model)
        if str(id) not in collection:
            return None
        doc = model.clean(data)
        doc[PRIMARY_KEY] = str(id)
        collection[str(id)] = doc
        return copy.deepcopy(doc)

    async def delete(self, model: ModelDefinition, id: str) -> bool:
        return self._collection(model).pop(str(id), None) is not None

    def clear(self) -> None:
        """Drop every collection. Primarily for testing."""
        self._collections.clear()

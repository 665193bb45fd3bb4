"""DocumentStore Protocol: shared interface for all document stores."""

from typing import Any, Protocol, runtime_checkable

from restforge.models.definition import ModelDefinition


@runtime_checkable
class DocumentStore(Protocol):
    """Interface the resource router persists through.

    Records are plain dicts keyed by "_id". Variants share their base
    model's collection; find/count on a variant model only see records of
    that variant, get sees any record of the collection.

    create and replace validate through ModelDefinition.clean and raise
    SchemaValidationError for invalid documents.
    """

    async def get(self, model: ModelDefinition, id: str) -> dict[str, Any] | None: ...

    async def get_many(
        self, model: ModelDefinition, ids: list[str]
    ) -> list[dict[str, Any]]: ...

    async def find(
        self,
        model: ModelDefinition,
        filter: dict[str, Any] | None = None,
        sort: list[tuple[str, int]] | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def count(
        self, model: ModelDefinition, filter: dict[str, Any] | None = None
    ) -> int: ...

    async def create(self, model: ModelDefinition, data: dict[str, Any]) -> dict[str, Any]: ...

    async def replace(
        self, model: ModelDefinition, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    async def delete(self, model: ModelDefinition, id: str) -> bool: ...

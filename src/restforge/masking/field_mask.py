"""Per-classification field masks.

Reads are projected onto the classification's read list (plus ``id``).
Writes are all-or-nothing: any key outside the classification's write list
rejects the whole body, naming every offending key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from restforge.core.types import Actor, Classification, Operation, classify


class FieldMaskError(PermissionError):
    """Raised when a body writes fields its author may not write."""


@runtime_checkable
class Transformer(Protocol):
    """Write/read hooks of a resource.

    transform runs on create/update bodies before the pre hooks; serialize
    runs on every record returned to a client.
    """

    def transform(
        self,
        body: Any,
        operation: Operation,
        actor: Actor | None,
        record: dict[str, Any] | None = None,
    ) -> Any: ...

    def serialize(self, record: dict[str, Any], actor: Actor | None) -> dict[str, Any]: ...


def _label(classification: Classification | str) -> str:
    if isinstance(classification, Classification):
        return classification.value
    return str(classification)


def apply_write_mask(
    body: dict[str, Any] | list[dict[str, Any]],
    classification: Classification | str,
    write_fields: list[str] | tuple[str, ...],
) -> dict[str, Any] | list[dict[str, Any]]:
    """Check a body (or list of bodies) against a write list.

    Returns the body unchanged when every key is writable.

    Raises:
        FieldMaskError: "User of type <classification> cannot write fields: a, b".
            For a list, the first failing element aborts the whole list.
    """
    if isinstance(body, list):
        return [apply_write_mask(item, classification, write_fields) for item in body]

    offending = [k for k in body if k not in write_fields]
    if offending:
        raise FieldMaskError(
            f"User of type {_label(classification)} cannot write fields: {', '.join(offending)}"
        )
    return body


def apply_serialize(
    record: dict[str, Any],
    classification: Classification | str,
    read_fields: list[str] | tuple[str, ...],
) -> dict[str, Any]:
    """Project a record onto a read list. ``id`` is always kept.

    Fields absent from the record are omitted, never set to None.
    """
    projected = {k: record[k] for k in read_fields if k in record}
    if "id" in record:
        projected["id"] = record["id"]
    elif "_id" in record:
        projected["id"] = str(record["_id"])
    return projected


@dataclass(frozen=True)
class FieldMask:
    """Read and write lists for each classification.

    Unlisted classifications may read nothing but ``id`` and write nothing.
    """

    admin_read_fields: tuple[str, ...] = ()
    owner_read_fields: tuple[str, ...] = ()
    auth_read_fields: tuple[str, ...] = ()
    anon_read_fields: tuple[str, ...] = ()
    admin_write_fields: tuple[str, ...] = ()
    owner_write_fields: tuple[str, ...] = ()
    auth_write_fields: tuple[str, ...] = ()
    anon_write_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def read_fields(self, classification: Classification) -> tuple[str, ...]:
        return {
            Classification.ADMIN: self.admin_read_fields,
            Classification.OWNER: self.owner_read_fields,
            Classification.AUTHENTICATED: self.auth_read_fields,
            Classification.ANONYMOUS: self.anon_read_fields,
        }[classification]

    def write_fields(self, classification: Classification) -> tuple[str, ...]:
        return {
            Classification.ADMIN: self.admin_write_fields,
            Classification.OWNER: self.owner_write_fields,
            Classification.AUTHENTICATED: self.auth_write_fields,
            Classification.ANONYMOUS: self.anon_write_fields,
        }[classification]

    def transform(
        self,
        body: Any,
        operation: Operation,
        actor: Actor | None,
        record: dict[str, Any] | None = None,
    ) -> Any:
        """Apply the write mask.

        Updates are classified against the stored record, creates against
        the body being written.
        """
        if isinstance(body, list):
            return [self.transform(item, operation, actor, record) for item in body]
        subject = record if record is not None else body
        classification = classify(actor, subject)
        return apply_write_mask(body, classification, self.write_fields(classification))

    def serialize(self, record: dict[str, Any], actor: Actor | None) -> dict[str, Any]:
        classification = classify(actor, record)
        return apply_serialize(record, classification, self.read_fields(classification))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldMask:
        """Create a FieldMask from metadata.

        Accepts ``{"read": {"admin": [...], ...}, "write": {...}}``.
        """
        read = data.get("read", {})
        write = data.get("write", {})
        return cls(
            admin_read_fields=read.get("admin", ()),
            owner_read_fields=read.get("owner", ()),
            auth_read_fields=read.get("authenticated", ()),
            anon_read_fields=read.get("anonymous", ()),
            admin_write_fields=write.get("admin", ()),
            owner_write_fields=write.get("owner", ()),
            auth_write_fields=write.get("authenticated", ()),
            anon_write_fields=write.get("anonymous", ()),
        )

"""Model definitions: the schema a resource is exposed over.

A ModelDefinition is what the persistence layer introspects: its fields,
which of them are arrays (scalar or sub-document), whether it declares a
soft-delete flag, and which variants are registered against it.

Variants form a tagged union keyed by the discriminator value. Each
variant owns an independent copy of the base fields plus its own, so a
field added to one variant can never leak into another.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from restforge.utils import new_object_id

FIELD_TYPES = (
    "string",
    "number",
    "integer",
    "boolean",
    "date",
    "object",
    "ref",
    "array",
)

SOFT_DELETE_FIELD = "deleted"
PRIMARY_KEY = "_id"


class SchemaValidationError(ValueError):
    """Raised when a document does not satisfy its model."""


class VariantNotFoundError(LookupError):
    """Raised when a discriminator value names no registered variant."""


@dataclass
class FieldDefinition:
    """A single field of a model.

    Attributes:
        name: Field name as stored in documents
        type: One of FIELD_TYPES
        ref: Referenced model name for "ref" fields and arrays of refs
        items: Element type for arrays: a type name, or a list of
            FieldDefinitions for arrays of sub-documents
        properties: Nested fields of an "object" field (free-form when None)
        required: Reject documents missing this field
        default: Value applied when the field is missing on create
    """

    name: str
    type: str
    ref: str | None = None
    items: str | list[FieldDefinition] | None = None
    properties: list[FieldDefinition] | None = None
    required: bool = False
    default: Any = None

    def __post_init__(self) -> None:
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Field '{self.name}' has unknown type '{self.type}'")
        if self.type == "array" and self.items is None:
            self.items = "string"

    @property
    def is_array(self) -> bool:
        return self.type == "array"

    @property
    def is_subdocument_array(self) -> bool:
        return self.type == "array" and isinstance(self.items, list)


def _check_scalar(type_name: str, value: Any) -> tuple[bool, Any]:
    """Check (and lightly cast) a scalar value. Returns (ok, value)."""
    if value is None:
        return True, None
    if type_name == "string":
        return isinstance(value, str), value
    if type_name == "boolean":
        return isinstance(value, bool), value
    if type_name in ("number", "integer"):
        if isinstance(value, bool):
            return False, value
        if isinstance(value, str):
            try:
                value = float(value) if type_name == "number" else int(value)
            except ValueError:
                return False, value
        if type_name == "integer":
            return isinstance(value, int), value
        return isinstance(value, (int, float)), value
    if type_name == "date":
        if isinstance(value, (datetime, date)):
            return True, value
        if isinstance(value, str):
            try:
                datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return False, value
            return True, value
        return False, value
    if type_name == "ref":
        return isinstance(value, str), value
    if type_name == "object":
        return isinstance(value, dict), value
    return True, value


@dataclass
class ModelDefinition:
    """Schema of one backing model.

    Attributes:
        name: Model name, also the collection/table identity
        fields: Declared fields (the primary key "_id" is implicit)
        strict: Raise on unknown fields instead of silently dropping them
        discriminator_key: Document key holding the variant name
        variant_name: Set on variant models, None on base models
        base: The base model of a variant
        variants: Registered variants of a base model, keyed by name
    """

    name: str
    fields: list[FieldDefinition]
    strict: bool = False
    discriminator_key: str = "__t"
    variant_name: str | None = None
    base: ModelDefinition | None = field(default=None, repr=False)
    variants: dict[str, ModelDefinition] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._by_name = {f.name: f for f in self.fields}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def base_model(self) -> ModelDefinition:
        return self.base or self

    @property
    def collection(self) -> str:
        return self.base_model.name

    def get_field(self, path: str) -> FieldDefinition | None:
        """Resolve a field by name or dotted path into object fields."""
        parts = path.split(".")
        current = self._by_name.get(parts[0])
        for part in parts[1:]:
            if current is None or current.properties is None:
                return None
            current = next((f for f in current.properties if f.name == part), None)
        return current

    @property
    def array_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.is_array]

    @property
    def soft_delete_field(self) -> str | None:
        """Name of the boolean soft-delete flag, if the model declares one."""
        flag = self._by_name.get(SOFT_DELETE_FIELD)
        if flag is not None and flag.type == "boolean":
            return flag.name
        return None

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def register_variant(
        self, name: str, fields: list[FieldDefinition]
    ) -> ModelDefinition:
        """Register a variant with its own fields on top of copies of ours."""
        if self.base is not None:
            raise ValueError(f"Cannot register variant '{name}' on variant '{self.name}'")
        if name in self.variants:
            raise ValueError(f"Variant '{name}' is already registered on '{self.name}'")

        own = {f.name for f in fields}
        combined = [copy.deepcopy(f) for f in self.fields if f.name not in own]
        combined.extend(copy.deepcopy(f) for f in fields)
        variant = ModelDefinition(
            name=name,
            fields=combined,
            strict=self.strict,
            discriminator_key=self.discriminator_key,
            variant_name=name,
            base=self,
        )
        self.variants[name] = variant
        return variant

    def get_variant(self, name: str) -> ModelDefinition:
        try:
            return self.base_model.variants[name]
        except KeyError:
            raise VariantNotFoundError(
                f"Could not find variant model for key {name}, base model: {self.base_model.name}"
            ) from None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self, data: dict[str, Any], *, create: bool = False) -> dict[str, Any]:
        """Validate a whole document and return a cleaned copy.

        Unknown keys are dropped (or rejected when strict), defaults are
        applied on create, required fields and value types are checked.
        """
        errors: list[str] = []
        cleaned = self._clean_fields(self.fields, data, create, errors, prefix="")

        if PRIMARY_KEY in data:
            cleaned[PRIMARY_KEY] = data[PRIMARY_KEY]
        if self.variant_name:
            cleaned[self.discriminator_key] = self.variant_name
        elif data.get(self.discriminator_key):
            cleaned[self.discriminator_key] = data[self.discriminator_key]

        if errors:
            raise SchemaValidationError(
                f"{self.name} validation failed: {', '.join(errors)}"
            )
        return cleaned

    def _clean_fields(
        self,
        fields: list[FieldDefinition],
        data: dict[str, Any],
        create: bool,
        errors: list[str],
        prefix: str,
    ) -> dict[str, Any]:
        known = {f.name for f in fields} | {PRIMARY_KEY, self.discriminator_key}
        for key in data:
            if key not in known and self.strict:
                errors.append(
                    f"Field `{prefix}{key}` is not in schema and strict mode is set to throw."
                )

        cleaned: dict[str, Any] = {}
        for fdef in fields:
            path = f"{prefix}{fdef.name}"
            if fdef.name not in data or data[fdef.name] is None:
                if create and fdef.default is not None:
                    cleaned[fdef.name] = copy.deepcopy(fdef.default)
                elif fdef.required:
                    errors.append(f"{path}: Path `{path}` is required.")
                elif fdef.name in data:
                    cleaned[fdef.name] = None
                continue
            cleaned[fdef.name] = self._clean_value(fdef, data[fdef.name], create, errors, path)
        return cleaned

    def _clean_value(
        self,
        fdef: FieldDefinition,
        value: Any,
        create: bool,
        errors: list[str],
        path: str,
    ) -> Any:
        if fdef.type == "array":
            if not isinstance(value, list):
                errors.append(f"{path}: Cast to Array failed for value `{value!r}`")
                return value
            if isinstance(fdef.items, list):
                items = []
                for i, item in enumerate(value):
                    if not isinstance(item, dict):
                        errors.append(f"{path}.{i}: Cast to Embedded failed for value `{item!r}`")
                        continue
                    sub = self._clean_fields(fdef.items, item, create, errors, f"{path}.{i}.")
                    sub[PRIMARY_KEY] = item.get(PRIMARY_KEY) or new_object_id()
                    items.append(sub)
                return items
            items = []
            for i, item in enumerate(value):
                ok, cast = _check_scalar(fdef.items, item)
                if not ok:
                    errors.append(f"{path}.{i}: Cast to {fdef.items} failed for value `{item!r}`")
                items.append(cast)
            return items

        if fdef.type == "object" and fdef.properties is not None:
            if not isinstance(value, dict):
                errors.append(f"{path}: Cast to Object failed for value `{value!r}`")
                return value
            return self._clean_fields(fdef.properties, value, create, errors, f"{path}.")

        ok, cast = _check_scalar(fdef.type, value)
        if not ok:
            errors.append(f"{path}: Cast to {fdef.type} failed for value `{value!r}`")
        return cast

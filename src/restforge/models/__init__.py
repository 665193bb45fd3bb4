"""Model definitions, registry and variant resolution."""

from restforge.models.definition import (
    FIELD_TYPES,
    PRIMARY_KEY,
    FieldDefinition,
    ModelDefinition,
    SchemaValidationError,
    VariantNotFoundError,
)
from restforge.models.registry import ModelRegistry
from restforge.models.variants import (
    DEFAULT_DISCRIMINATOR_KEY,
    resolve_variant,
    variant_key_of,
    variant_mismatch,
)

__all__ = [
    "DEFAULT_DISCRIMINATOR_KEY",
    "FIELD_TYPES",
    "PRIMARY_KEY",
    "FieldDefinition",
    "ModelDefinition",
    "ModelRegistry",
    "SchemaValidationError",
    "VariantNotFoundError",
    "resolve_variant",
    "variant_key_of",
    "variant_mismatch",
]

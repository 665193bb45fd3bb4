"""Field-level read/write masking and response serialization."""

from restforge.masking.field_mask import (
    FieldMask,
    FieldMaskError,
    Transformer,
    apply_serialize,
    apply_write_mask,
)
from restforge.masking.serialize import (
    LegacyTransformer,
    run_transform,
    serialize_record,
    serialize_response,
)

__all__ = [
    "FieldMask",
    "FieldMaskError",
    "LegacyTransformer",
    "Transformer",
    "apply_serialize",
    "apply_write_mask",
    "run_transform",
    "serialize_record",
    "serialize_response",
]

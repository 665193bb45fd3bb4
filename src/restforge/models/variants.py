"""Variant (discriminated model) resolution."""

from typing import Any

from restforge.models.definition import ModelDefinition

DEFAULT_DISCRIMINATOR_KEY = "__t"


def variant_key_of(body: Any, discriminator_key: str = DEFAULT_DISCRIMINATOR_KEY) -> str | None:
    """Return the variant named by a request body, if any."""
    if not isinstance(body, dict):
        return None
    value = body.get(discriminator_key)
    return str(value) if value else None


def resolve_variant(
    base_model: ModelDefinition,
    body: Any = None,
    discriminator_key: str = DEFAULT_DISCRIMINATOR_KEY,
) -> ModelDefinition:
    """Pick the concrete model for a request.

    Returns the base model when the body names no variant.

    Raises:
        VariantNotFoundError: The body names a variant that is not registered
    """
    name = variant_key_of(body, discriminator_key)
    if name is None:
        return base_model
    return base_model.get_variant(name)


def variant_mismatch(
    record: dict[str, Any],
    body: Any,
    discriminator_key: str = DEFAULT_DISCRIMINATOR_KEY,
) -> bool:
    """Check whether a stored record's variant differs from the request's.

    A record that belongs to a variant may only be changed by a request that
    names that same variant, so variant-specific hooks and validation are
    never bypassed through the base model.
    """
    stored = record.get(discriminator_key)
    requested = variant_key_of(body, discriminator_key)
    if not stored:
        return requested is not None
    return requested != stored

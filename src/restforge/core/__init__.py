"""Core types for restforge."""

from restforge.core.types import (
    Actor,
    Classification,
    Operation,
    classify,
    is_owner,
    owner_id_of,
)

__all__ = [
    "Actor",
    "Classification",
    "Operation",
    "classify",
    "is_owner",
    "owner_id_of",
]

"""YAML metadata: model and resource definitions."""

from restforge.metadata.loader import (
    MetadataLoader,
    ResourceDefinition,
    get_query_filter,
    register_query_filter,
)
from restforge.metadata.validator import (
    ValidationIssue,
    validate_document,
    validate_metadata_dir,
    validate_yaml_file,
)

__all__ = [
    "MetadataLoader",
    "ResourceDefinition",
    "ValidationIssue",
    "get_query_filter",
    "register_query_filter",
    "validate_document",
    "validate_metadata_dir",
    "validate_yaml_file",
]

"""Load model and resource definitions from YAML files.

Layout:
    <metadata>/models/*.yaml      one ModelDefinition per file
    <metadata>/resources/*.yaml   one resource (ResourceOptions + prefix) per file

Permission rules, hooks and query filters are referenced by name and must
be registered before load_all() runs.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from restforge.auth.permissions import PermissionSet, get_rule, owner_query_filter
from restforge.hooks.types import HookSet
from restforge.masking.field_mask import FieldMask
from restforge.models.definition import FieldDefinition, ModelDefinition
from restforge.models.registry import ModelRegistry
from restforge.models.variants import DEFAULT_DISCRIMINATOR_KEY
from restforge.router.options import PopulatePath, ResourceOptions

QUERY_FILTERS: dict[str, Any] = {
    "ownerQueryFilter": owner_query_filter,
}


def register_query_filter(name: str, query_filter) -> None:
    """Make a query filter available to resource metadata by name."""
    QUERY_FILTERS[name] = query_filter


def get_query_filter(name: str):
    if name not in QUERY_FILTERS:
        raise ValueError(f"Query filter '{name}' is not registered.")
    return QUERY_FILTERS[name]


@dataclass
class ResourceDefinition:
    """A resource loaded from metadata."""

    name: str
    model: ModelDefinition
    options: ResourceOptions
    prefix: str
    description: str = ""


class MetadataLoader:
    """Loads model and resource definitions from YAML files."""

    def __init__(self, metadata_path: Path, settings: Any = None):
        self.metadata_path = Path(metadata_path)
        self.settings = settings
        self.models: dict[str, ModelDefinition] = {}
        self.resources: dict[str, ResourceDefinition] = {}

    def load_all(self) -> None:
        """Load all models, then the resources exposing them."""
        self._load_models()
        self._load_resources()

    def _yaml_files(self, subdir: str) -> list[Path]:
        path = self.metadata_path / subdir
        if not path.exists():
            return []
        return sorted(path.glob("*.yaml"))

    def _load_models(self) -> None:
        """Load model definitions and register them."""
        for yaml_file in self._yaml_files("models"):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if data and "model" in data:
                model = self._resolve_model(data)
                self.models[model.name] = model
                ModelRegistry.register(model)

    def _load_resources(self) -> None:
        """Load resource definitions."""
        for yaml_file in self._yaml_files("resources"):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if data and "resource" in data:
                resource = self._resolve_resource(data)
                if resource.name in self.resources:
                    raise ValueError(f"Duplicate resource '{resource.name}' in {yaml_file}")
                self.resources[resource.name] = resource

    def _resolve_model(self, data: dict) -> ModelDefinition:
        model = ModelDefinition(
            name=data["model"],
            fields=[self._resolve_field(f) for f in data.get("fields", [])],
            strict=data.get("strict", False),
            discriminator_key=data.get("discriminatorKey", DEFAULT_DISCRIMINATOR_KEY),
        )
        for variant in data.get("variants", []):
            model.register_variant(
                variant["name"], [self._resolve_field(f) for f in variant.get("fields", [])]
            )
        return model

    def _resolve_field(self, data: dict) -> FieldDefinition:
        """Convert field dict to FieldDefinition."""
        items = data.get("items")
        if isinstance(items, list):
            items = [self._resolve_field(f) for f in items]
        properties = data.get("properties")
        if properties is not None:
            properties = [self._resolve_field(f) for f in properties]

        return FieldDefinition(
            name=data["name"],
            type=data.get("type", "string"),
            ref=data.get("ref"),
            items=items,
            properties=properties,
            required=data.get("required", False),
            default=data.get("default"),
        )

    def _resolve_resource(self, data: dict) -> ResourceDefinition:
        name = data["resource"]
        model_name = data["model"]
        model = self.models.get(model_name)
        if model is None:
            if not ModelRegistry.is_registered(model_name):
                raise ValueError(f"Resource '{name}' references unknown model '{model_name}'")
            model = ModelRegistry.get(model_name)

        options: dict[str, Any] = {
            "permissions": self._resolve_permissions(data.get("permissions", {})),
            "allow_anonymous": data.get("allowAnonymous", False),
            "query_fields": tuple(data.get("queryFields", ())),
            "default_query_params": dict(data.get("defaultQueryParams", {})),
            "sort": data.get("sort"),
            "populate_paths": tuple(
                self._resolve_populate_path(p) for p in data.get("populatePaths", [])
            ),
            "hooks": HookSet.from_dict(data.get("hooks", {})),
            "discriminator_key": data.get("discriminatorKey", model.discriminator_key),
        }
        if data.get("queryFilter"):
            options["query_filter"] = get_query_filter(data["queryFilter"])
        if "fieldMask" in data:
            options["transformer"] = FieldMask.from_dict(data["fieldMask"])

        default_limit = data.get("defaultLimit", getattr(self.settings, "default_limit", None))
        max_limit = data.get("maxLimit", getattr(self.settings, "max_limit", None))
        if default_limit is not None:
            options["default_limit"] = default_limit
        if max_limit is not None:
            options["max_limit"] = max_limit

        return ResourceDefinition(
            name=name,
            model=model,
            options=ResourceOptions(**options),
            prefix=data.get("prefix", f"/{name}"),
            description=data.get("description", ""),
        )

    def _resolve_permissions(self, data: dict) -> PermissionSet:
        """Resolve rule names per operation. Missing operations deny."""
        return PermissionSet(
            **{op: tuple(get_rule(rule) for rule in rules) for op, rules in data.items()}
        )

    def _resolve_populate_path(self, data: Any) -> PopulatePath:
        if isinstance(data, str):
            return PopulatePath(data)
        fields = data.get("fields")
        return PopulatePath(data["path"], tuple(fields) if fields is not None else None)

    def get_model(self, name: str) -> ModelDefinition | None:
        """Get a loaded model by name."""
        return self.models.get(name)

    def get_resource(self, name: str) -> ResourceDefinition | None:
        """Get a loaded resource by name."""
        return self.resources.get(name)

    def list_models(self) -> list[str]:
        """List all model names."""
        return list(self.models.keys())

    def list_resources(self) -> list[str]:
        """List all resource names."""
        return list(self.resources.keys())

"""Registry of model definitions by name.

Reference fields name the model they point to; populate looks the
referenced model up here.
"""

from restforge.models.definition import ModelDefinition


class ModelRegistry:
    """Registry for model definitions.

    Models are registered at application startup, either explicitly or by
    the metadata loader.
    """

    _models: dict[str, ModelDefinition] = {}

    @classmethod
    def register(cls, model: ModelDefinition) -> ModelDefinition:
        """Register a model by name. Re-registering a name replaces it."""
        cls._models[model.name] = model
        return model

    @classmethod
    def get(cls, name: str) -> ModelDefinition:
        """Get a registered model.

        Raises:
            ValueError: If the model is not registered
        """
        if name not in cls._models:
            raise ValueError(f"Model '{name}' is not registered.")
        return cls._models[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._models

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._models.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._models.clear()

"""Shared fixtures: a Food model with tags/categories arrays and a SuperFood variant."""

import pytest

from restforge.core.types import Actor
from restforge.hooks import HookRegistry
from restforge.models import FieldDefinition, ModelDefinition, ModelRegistry

ADMIN = Actor(id="admin1", admin=True)
OWNER = Actor(id="owner1")
OTHER = Actor(id="other1")


def build_user_model() -> ModelDefinition:
    return ModelDefinition(
        name="User",
        fields=[
            FieldDefinition("email", "string", required=True),
            FieldDefinition("name", "string"),
        ],
    )


def build_food_model(soft_delete: bool = False) -> ModelDefinition:
    fields = [
        FieldDefinition("name", "string", required=True),
        FieldDefinition("calories", "number"),
        FieldDefinition("created", "date"),
        FieldDefinition("ownerId", "ref", ref="User"),
        FieldDefinition("hidden", "boolean", default=False),
        FieldDefinition(
            "source",
            "object",
            properties=[
                FieldDefinition("name", "string"),
                FieldDefinition("href", "string"),
            ],
        ),
        FieldDefinition("tags", "array", items="string"),
        FieldDefinition(
            "categories",
            "array",
            items=[
                FieldDefinition("name", "string"),
                FieldDefinition("show", "boolean"),
            ],
        ),
    ]
    if soft_delete:
        fields.append(FieldDefinition("deleted", "boolean", default=False))
    model = ModelDefinition(name="Food", fields=fields)
    model.register_variant("SuperFood", [FieldDefinition("superPower", "string")])
    return model


@pytest.fixture(autouse=True)
def clear_registries():
    """Clear model and hook registries before and after each test."""
    ModelRegistry.clear()
    HookRegistry.clear()
    yield
    ModelRegistry.clear()
    HookRegistry.clear()


@pytest.fixture
def user_model():
    return ModelRegistry.register(build_user_model())


@pytest.fixture
def food_model(user_model):
    return ModelRegistry.register(build_food_model())


@pytest.fixture
def soft_food_model(user_model):
    return ModelRegistry.register(build_food_model(soft_delete=True))

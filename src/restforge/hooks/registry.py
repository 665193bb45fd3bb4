"""Hook registry.

Provides registration and lookup for hook implementations so resource
metadata can name them. Follows the same pattern as ModelRegistry.
"""

from collections.abc import Callable
from typing import Any

# Hook function signature depends on the hook point; see HookSet.
HookFn = Callable[..., Any]


class HookRegistry:
    """Registry for hook implementations.

    Hooks must be explicitly registered before they can be referenced
    from resource metadata. Registration is typically done at application
    startup via the @hook decorator.

    Example:
        @hook("stampOwner")
        async def stamp_owner(body, ctx):
            return {**body, "ownerId": ctx.actor.id}
    """

    _hooks: dict[str, HookFn] = {}

    @classmethod
    def register(cls, name: str, hook_fn: HookFn) -> None:
        """Register a hook function by name.

        Idempotent: re-registering the same name is a no-op.

        Args:
            name: Unique identifier for the hook
            hook_fn: Sync or async function implementing the hook
        """
        if name in cls._hooks:
            return
        cls._hooks[name] = hook_fn

    @classmethod
    def get(cls, name: str) -> HookFn:
        """Get a registered hook function by name.

        Raises:
            ValueError: If hook is not registered
        """
        if name not in cls._hooks:
            raise ValueError(
                f"Hook '{name}' is not registered. "
                "Hooks must be explicitly registered at application startup."
            )
        return cls._hooks[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a hook is registered."""
        return name in cls._hooks

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered hook names."""
        return sorted(cls._hooks.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._hooks.clear()


def hook(name: str) -> Callable[[HookFn], HookFn]:
    """Decorator to register a hook function.

    Usage:
        @hook("stampOwner")
        def stamp_owner(body, ctx):
            ...
    """

    def decorator(fn: HookFn) -> HookFn:
        HookRegistry.register(name, fn)
        return fn

    return decorator

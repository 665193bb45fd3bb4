"""Resource lifecycle hooks.

Provides HookSet (the six optional extension points), HookRegistry for
named hooks referenced from metadata, and HookService for execution.
"""

from restforge.hooks.registry import HookFn, HookRegistry, hook
from restforge.hooks.service import HookService
from restforge.hooks.types import HOOK_NAMES, HookContext, HookSet

__all__ = [
    "HOOK_NAMES",
    "HookContext",
    "HookFn",
    "HookRegistry",
    "HookService",
    "HookSet",
    "hook",
]

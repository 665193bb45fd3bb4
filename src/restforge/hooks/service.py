"""Hook execution service.

Runs one lifecycle hook at a time, strictly sequentially with the
surrounding persistence calls, and maps hook outcomes to APIErrors.
"""

import inspect
import logging
from typing import Any

from restforge.errors import APIError
from restforge.hooks.types import HookContext

logger = logging.getLogger(__name__)


async def _call(fn, *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class HookService:
    """Invokes pre and post hooks for a resource.

    Stage names are capitalized operation names ("Create", "Update",
    "Delete") and appear in the error titles.
    """

    async def run_pre(
        self,
        stage: str,
        hook_fn,
        value: Any,
        context: HookContext,
    ) -> Any:
        """Run a pre hook and return its (possibly replaced) value.

        Returns the value untouched when there is no hook.

        Raises:
            APIError: 403 "Pre <Stage> returned null" when the hook returns
                None, 400 "Pre <Stage> error: <message>" when it raises.
        """
        if hook_fn is None:
            return value
        try:
            result = await _call(hook_fn, value, context)
        except APIError:
            raise
        except Exception as e:
            raise APIError(f"Pre {stage} error: {e}", 400) from e

        if result is None:
            raise APIError(f"Pre {stage} returned null", 403)
        return result

    async def run_post(
        self,
        stage: str,
        hook_fn,
        *args: Any,
    ) -> None:
        """Run a post hook. Its return value is ignored.

        Raises:
            APIError: 400 "Post <Stage> error: <message>" when it raises
        """
        if hook_fn is None:
            return
        try:
            await _call(hook_fn, *args)
        except APIError:
            raise
        except Exception as e:
            logger.error("post%s hook failed: %s", stage, e)
            raise APIError(f"Post {stage} error: {e}", 400) from e

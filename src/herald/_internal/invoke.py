"""Uniform calls for user-supplied callables.

Controller actions, service factories and shutdown hooks may be plain
functions or coroutine functions; herald awaits whichever comes back.
"""

import inspect
from typing import Any


async def invoke(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target*, awaiting the result when it is awaitable."""
    outcome = target(*args, **kwargs)
    return await outcome if inspect.isawaitable(outcome) else outcome

"""Runtime helpers shared by the retry wrapper and the engine."""

from __future__ import annotations

import inspect
from typing import Any, Callable


async def maybe_await(fn: Callable, *args, **kwargs) -> Any:
    """Call a function and await if it returns an awaitable."""
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def resolve(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value

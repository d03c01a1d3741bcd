"""Middleware around node activations.

A middleware is an async callable ``(node, store, call_next) -> action``.
It may run code before and after ``await call_next(node, store)``, replace
the returned action, or let exceptions propagate. Middleware composes as an
explicit chain, so cross-cutting behavior (logging, timing, tracing) never
requires subclassing nodes.

Example:
    async def audit(node, store, call_next):
        store.setdefault("trail", []).append(node.name)
        return await call_next(node, store)

    await run(start, store, middleware=[logging_middleware, audit])
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, Sequence

if TYPE_CHECKING:
    from .node import Action, Node

__all__ = [
    "Activate",
    "Middleware",
    "compose",
    "logging_middleware",
    "timing_middleware",
]

logger = logging.getLogger(__name__)

Activate = Callable[["Node", Any], Awaitable["Action"]]


class Middleware(Protocol):
    """Protocol for activation middleware."""

    async def __call__(
        self,
        node: "Node",
        store: Any,
        call_next: Activate,
    ) -> "Action":
        """Wrap one activation; return the action used for routing."""
        ...


def compose(middleware: Sequence[Middleware], activate: Activate) -> Activate:
    """Fold ``middleware`` around ``activate``.

    The first middleware in the sequence is the outermost one.
    """
    chain = activate
    for mw in reversed(middleware):
        chain = _bind(mw, chain)
    return chain


def _bind(mw: Middleware, call_next: Activate) -> Activate:
    async def wrapped(node: "Node", store: Any) -> "Action":
        return await mw(node, store, call_next)

    return wrapped


async def logging_middleware(
    node: "Node", store: Any, call_next: Activate
) -> "Action":
    """Log each activation and the action it produced."""
    logger.debug("Activating %s", node.name)
    try:
        action = await call_next(node, store)
    except Exception as exc:
        logger.error("Node %s failed: %r", node.name, exc)
        raise
    logger.debug("%s returned action %r", node.name, action)
    return action


def timing_middleware(sink: Callable[[str, float], None]) -> Middleware:
    """Build a middleware that reports activation durations.

    Args:
        sink: Called with ``(node_name, seconds)`` after every activation,
            including failed ones.
    """

    async def timed(node: "Node", store: Any, call_next: Activate) -> "Action":
        start_time = time.perf_counter()
        try:
            return await call_next(node, store)
        finally:
            sink(node.name, time.perf_counter() - start_time)

    return timed

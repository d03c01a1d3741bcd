"""Graph traversal engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from .middleware import Middleware, compose
from .node import DEFAULT_ACTION, END, Action, Node
from .retry import execute_with_retry
from .utils import resolve

logger = logging.getLogger(__name__)


async def _fan_out(node: Node, store: Any) -> tuple[list[Any], list[Any]]:
    """Run ``prep`` and one ``exec`` task per yielded item.

    Each item gets a slot when it is yielded and its result is written to
    the same slot, so ``items[i]`` and ``results[i]`` always belong together
    and follow ``prep`` order regardless of completion order.
    """
    items: list[Any] = []
    results: list[Any] = []
    tasks: list[asyncio.Task] = []

    async def compute(slot: int, pending: Any) -> None:
        item = await resolve(pending)
        items[slot] = item
        results[slot] = await execute_with_retry(node, store, item)

    # Each yielded value is sent back into prep as the result of its yield.
    agen = node.prep(store)
    sent: Any = None
    try:
        while True:
            try:
                pending = await agen.asend(sent)
            except StopAsyncIteration:
                break
            slot = len(tasks)
            items.append(None)
            results.append(None)
            tasks.append(asyncio.create_task(compute(slot, pending)))
            sent = pending
    except Exception:
        # Let already dispatched work settle before surfacing the prep error.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    return items, results


async def activate(node: Node, store: Any) -> Action:
    """Drive one node through prep, exec fan-out and post."""
    items, results = await _fan_out(node, store)
    logger.debug("%s computed %d item(s)", node.name, len(results))
    return await node.post(store, items, results)


def resolve_next(node: Node, action: Action) -> Node | None:
    """Return the node that ``action`` leads to, or None to stop."""
    if action is END:
        logger.debug("%s ended the run", node.name)
        return None

    target = node.get_edge(action)
    if target is None:
        target = node.get_edge(DEFAULT_ACTION)
    if target is None:
        logger.debug("%s: no edge for action %r, stopping", node.name, action)
        return None

    logger.debug("%s --%s--> %s", node.name, action, target.name)
    return target


async def run(
    node: Node,
    store: Any,
    *,
    middleware: Sequence[Middleware] = (),
) -> None:
    """Run a graph starting at ``node`` with a shared ``store``.

    The same store object is passed to every node on the path. The run ends
    when a node returns ``END`` or an action with neither a matching nor a
    default edge. Any error a node fails with propagates unchanged.

    Example:
        store = {"question": "What is RAG?"}
        await run(decide, store)
        print(store["answer"])

    Args:
        node: Start node.
        store: Shared mutable state.
        middleware: Wrappers applied around every activation, outermost
            first. See :mod:`stageflow.core.middleware`.
    """
    if not isinstance(node, Node):
        raise TypeError(f"run() expects a Node, got {type(node).__name__}")

    step = compose(middleware, activate)
    current: Node | None = node
    while current is not None:
        action = await step(current, store)
        current = resolve_next(current, action)


def run_sync(node: Node, store: Any, **kwargs: Any) -> None:
    """Run a graph from synchronous code.

    Raises:
        RuntimeError: If called while an event loop is already running.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(run(node, store, **kwargs))
    else:
        raise RuntimeError(
            "Cannot run synchronously from async context. "
            "Use 'await run(node, store)' instead."
        )

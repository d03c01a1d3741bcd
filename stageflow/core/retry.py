"""Bounded retry around a single exec call."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .utils import maybe_await

if TYPE_CHECKING:
    from .node import Node

logger = logging.getLogger(__name__)


async def _attempt(node: "Node", store: Any, item: Any) -> Any:
    config = node.config
    if config.enforce_timeout:
        return await asyncio.wait_for(node.exec(store, item), config.timeout / 1000)
    return await node.exec(store, item)


async def execute_with_retry(node: "Node", store: Any, item: Any) -> Any:
    """Run ``node.exec`` for one item with the node's retry policy.

    Attempts are sequential. After a failed attempt that is not the last one,
    waits ``retry_delay`` milliseconds. When the last attempt fails the
    node's ``exec_fallback`` supplies the result; without one the original
    exception propagates.
    """
    max_retries = node.config.max_retries
    delay = max(node.config.retry_delay, 0) / 1000

    for attempt in range(1, max_retries + 1):
        try:
            return await _attempt(node, store, item)
        except Exception as exc:
            if attempt < max_retries:
                logger.warning(
                    "%s.exec failed (attempt %d/%d): %r; retrying in %.3fs",
                    node.name,
                    attempt,
                    max_retries,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
                continue

            if node.exec_fallback is not None:
                logger.warning(
                    "%s.exec exhausted %d attempts; using fallback: %r",
                    node.name,
                    max_retries,
                    exc,
                )
                return await maybe_await(node.exec_fallback, store, item, exc)

            logger.error(
                "%s.exec exhausted %d attempts without fallback: %r",
                node.name,
                max_retries,
                exc,
            )
            raise

    # NodeConfig rejects max_retries < 1, so the loop always returns or raises.
    raise AssertionError("unreachable")

"""
Minimal stageflow Demo
======================

Demonstrates the core primitives without any API keys:
1. A node that fans out work items and aggregates them in post
2. Labeled edges with a loop that ends on a store counter
3. Retry with a fallback for a flaky step

Run with: ``python examples/minimal_demo.py``
"""

import asyncio
import logging
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from stageflow import END, Node, logging_middleware, run, timing_middleware


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------


class RetrieveDocs(Node):
    """Pretend to fetch one document per search term."""

    async def prep(self, store):
        for term in store["query"].split():
            yield term

    async def exec(self, store, term):
        await asyncio.sleep(random.uniform(0.01, 0.05))
        return f"doc about '{term}'"

    async def post(self, store, terms, docs):
        store["documents"] = docs
        return "critique"


class Critique(Node):
    """Score the documents; ask for another round until we have enough."""

    async def prep(self, store):
        yield len(store["documents"])

    async def exec(self, store, count):
        if random.random() < 0.3:
            raise ConnectionError("critic unavailable")
        return min(1.0, 0.3 * count)

    async def exec_fallback(self, store, count, error):
        return 0.0

    async def post(self, store, items, scores):
        store["rounds"] = store.get("rounds", 0) + 1
        store["quality"] = scores[0]
        if store["quality"] >= 0.9 or store["rounds"] >= 3:
            return END
        store["query"] += " details"
        return "retry"


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    retrieve = RetrieveDocs()
    critique = Critique(max_retries=2, retry_delay=50)
    retrieve.connect("critique", critique)
    critique.connect("retry", retrieve)

    timings: list[tuple[str, float]] = []
    store = {"query": "graph engines"}
    await run(
        retrieve,
        store,
        middleware=[
            logging_middleware,
            timing_middleware(lambda name, secs: timings.append((name, secs))),
        ],
    )

    print(f"Rounds: {store['rounds']}, quality: {store['quality']:.2f}")
    print(f"Documents: {store['documents']}")
    for name, secs in timings:
        print(f"  {name:<14} {secs * 1000:6.1f} ms")


if __name__ == "__main__":
    asyncio.run(main())

"""Shared test fixtures."""

import asyncio

import pytest

from stageflow import END, Node


class MockLLM:
    """Stand-in for model, embedding and search clients with fixed latency."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.calls: list[str] = []

    async def call(self, prompt: str, delay: float | None = None) -> str:
        self.calls.append(prompt)
        await asyncio.sleep(self.delay if delay is None else delay)
        return f"Response to: {prompt[:50]}..."

    async def embed(self, text: str) -> list[int]:
        await asyncio.sleep(self.delay)
        return [ord(c) + i for i, c in enumerate(text)]

    async def search_web(self, query: str) -> str:
        await asyncio.sleep(self.delay)
        return f"Search results for: {query}"


class Recorder(Node):
    """Node that yields ``store["inputs"]`` and records every post call."""

    def __init__(self, label="Recorder", action=END, **config):
        super().__init__(**config)
        self.label = label
        self.action = action
        self.posts: list[tuple[list, list]] = []

    @property
    def name(self):
        return self.label

    async def prep(self, store):
        for item in store.get("inputs", [None]):
            yield item

    async def exec(self, store, item):
        return item

    async def post(self, store, items, results):
        self.posts.append((items, results))
        store.setdefault("visited", []).append(self.name)
        return self.action


@pytest.fixture
def llm():
    return MockLLM()


@pytest.fixture
def fast_retry():
    """Config overrides that keep retry tests quick."""
    return {"max_retries": 3, "retry_delay": 10}

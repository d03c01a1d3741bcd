"""Tests for per-item retry, fallback and timeouts."""

import asyncio
import logging
import time

import pytest

from stageflow import END, Node, run
from stageflow.core.retry import execute_with_retry


class UnreliableNode(Node):
    """Fails the first ``failures`` exec attempts, then succeeds."""

    def __init__(self, failures, **config):
        super().__init__(**config)
        self.failures = failures

    async def prep(self, store):
        yield store["prompt"]

    async def exec(self, store, prompt):
        store["attempts"] += 1
        if store["attempts"] <= self.failures:
            raise ConnectionError(f"Simulated API failure #{store['attempts']}")
        return f"Response to: {prompt}"

    async def post(self, store, items, results):
        store["result"] = results[0]
        return END


class FallbackNode(UnreliableNode):
    async def exec_fallback(self, store, item, error):
        store["fallback_error"] = error
        return "Fallback response due to error"


def _store():
    return {"prompt": "Test prompt", "attempts": 0}


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [0, 1, 2])
async def test_retries_until_success(failures):
    store = _store()
    start = time.perf_counter()
    await run(UnreliableNode(failures, max_retries=3, retry_delay=20), store)
    elapsed = time.perf_counter() - start

    assert store["attempts"] == failures + 1
    assert store["result"] == "Response to: Test prompt"
    assert elapsed >= failures * 0.02 * 0.9


@pytest.mark.asyncio
async def test_fallback_after_exhausting_attempts():
    store = _store()
    await run(FallbackNode(failures=10, max_retries=2, retry_delay=10), store)

    assert store["attempts"] == 2
    assert store["result"] == "Fallback response due to error"
    assert isinstance(store["fallback_error"], ConnectionError)
    assert "#2" in str(store["fallback_error"])


@pytest.mark.asyncio
async def test_fallback_not_used_when_a_retry_succeeds():
    store = _store()
    await run(FallbackNode(failures=2, max_retries=3, retry_delay=0), store)
    assert store["attempts"] == 3
    assert store["result"] == "Response to: Test prompt"
    assert "fallback_error" not in store


@pytest.mark.asyncio
async def test_without_fallback_original_error_propagates():
    store = _store()
    with pytest.raises(ConnectionError, match="#3") as exc_info:
        await run(UnreliableNode(failures=10, max_retries=3, retry_delay=0), store)

    assert type(exc_info.value) is ConnectionError
    assert store["attempts"] == 3
    assert "result" not in store


@pytest.mark.asyncio
async def test_single_attempt_means_no_retry():
    store = _store()
    with pytest.raises(ConnectionError):
        await run(UnreliableNode(failures=1, max_retries=1, retry_delay=0), store)
    assert store["attempts"] == 1


@pytest.mark.asyncio
async def test_sync_fallback_is_supported():
    class SyncFallback(UnreliableNode):
        def exec_fallback(self, store, item, error):
            return f"cached answer for {item}"

    store = _store()
    await run(SyncFallback(failures=5, max_retries=1), store)
    assert store["result"] == "cached answer for Test prompt"


@pytest.mark.asyncio
async def test_fallback_recovers_single_item_in_batch():
    class Batch(Node):
        async def prep(self, store):
            for i in range(3):
                yield i

        async def exec(self, store, item):
            if item == 1:
                raise ValueError("flaky")
            return item * 10

        async def exec_fallback(self, store, item, error):
            return -1

        async def post(self, store, items, results):
            store["results"] = results
            return END

    store = {}
    await run(Batch(max_retries=2, retry_delay=0), store)
    assert store["results"] == [0, -1, 20]


@pytest.mark.asyncio
async def test_retries_of_one_item_are_sequential():
    active = 0
    peak = 0

    class Overlap(UnreliableNode):
        async def exec(self, store, prompt):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            try:
                await asyncio.sleep(0.005)
                return await super().exec(store, prompt)
            finally:
                active -= 1

    store = _store()
    await run(Overlap(failures=2, max_retries=3, retry_delay=0), store)
    assert peak == 1
    assert store["attempts"] == 3


@pytest.mark.asyncio
async def test_failed_attempts_are_logged(caplog):
    store = _store()
    with caplog.at_level(logging.WARNING, logger="stageflow.core.retry"):
        await run(FallbackNode(failures=10, max_retries=2, retry_delay=0), store)

    messages = [record.getMessage() for record in caplog.records]
    assert any("attempt 1/2" in message for message in messages)
    assert any("using fallback" in message for message in messages)


# =============================================================================
# Timeouts
# =============================================================================


class SlowNode(Node):
    async def prep(self, store):
        yield store["delay"]

    async def exec(self, store, delay):
        store["attempts"] = store.get("attempts", 0) + 1
        await asyncio.sleep(delay)
        return "done"

    async def post(self, store, items, results):
        store["result"] = results[0]
        return END


@pytest.mark.asyncio
async def test_timeout_is_advisory_by_default():
    store = {"delay": 0.05}
    await run(SlowNode(timeout=1, max_retries=1), store)
    assert store["result"] == "done"


@pytest.mark.asyncio
async def test_enforced_timeout_counts_as_failed_attempt():
    store = {"delay": 0.5}
    node = SlowNode(timeout=20, enforce_timeout=True, max_retries=2, retry_delay=0)
    with pytest.raises(asyncio.TimeoutError):
        await run(node, store)
    assert store["attempts"] == 2


@pytest.mark.asyncio
async def test_enforced_timeout_within_budget_succeeds():
    store = {"delay": 0.0}
    node = SlowNode(timeout=1000, enforce_timeout=True)
    await run(node, store)
    assert store["result"] == "done"


@pytest.mark.asyncio
async def test_execute_with_retry_directly():
    node = FallbackNode(failures=1, max_retries=2, retry_delay=0)
    store = _store()
    assert await execute_with_retry(node, store, "hi") == "Response to: hi"
    assert store["attempts"] == 2

"""
Search-or-answer agent driven by any async ``prompt -> reply`` callable.

The nodes only ever ``await complete(prompt)``, so a model client, an HTTP
call or the offline stand-in below can be plugged in without changes.

Run with: ``python examples/llm_agent.py "What is retrieval-augmented generation?"``
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable

sys.path.insert(0, str(Path(__file__).parent.parent))

from stageflow import END, Node, Registry, logging_middleware

Complete = Callable[[str], Awaitable[str]]

DECIDE_PROMPT = """Question: {question}
Notes so far:
{notes}

Reply with exactly one word: SEARCH if you need more information, ANSWER otherwise."""


class ModelNode(Node):
    """Node whose ``exec`` sends its prompt to ``complete``."""

    def __init__(self, complete: Complete, **config):
        super().__init__(**config)
        self.complete = complete

    async def exec(self, store, prompt):
        return await self.complete(prompt)


class Decide(ModelNode):
    async def prep(self, store):
        notes = "\n".join(store["notes"]) or "(none)"
        yield DECIDE_PROMPT.format(question=store["question"], notes=notes)

    async def exec(self, store, prompt):
        reply = (await super().exec(store, prompt)).strip().upper()
        if reply not in ("SEARCH", "ANSWER"):
            raise ValueError(f"Unexpected decision: {reply!r}")
        return reply.lower()

    async def exec_fallback(self, store, prompt, error):
        return "answer"

    async def post(self, store, items, results):
        if results[0] == "search" and len(store["notes"]) >= self.params.get("max_notes", 3):
            return "answer"
        return results[0]


class Brainstorm(ModelNode):
    """Stand-in for a search tool: asks the model for facts from several angles."""

    ANGLES = ("definition", "history", "practical use")

    async def prep(self, store):
        for angle in self.ANGLES:
            yield f"In one sentence, the {angle} of: {store['question']}"

    async def post(self, store, prompts, facts):
        store["notes"].extend(facts)
        return "decide"


class Answer(ModelNode):
    async def prep(self, store):
        notes = "\n".join(store["notes"])
        yield f"Question: {store['question']}\nNotes:\n{notes}\nAnswer concisely:"

    async def post(self, store, items, results):
        store["answer"] = results[0]
        return END


def build(complete: Complete) -> Registry:
    decide = Decide(complete, max_retries=3, retry_delay=500).set_params({"max_notes": 3})
    search = Brainstorm(complete, retry_delay=1000)
    answer = Answer(complete)

    decide.connect("search", search).connect("answer", answer)
    search.connect("decide", decide)

    flows = Registry()
    flows.register("agent", decide)
    return flows


async def offline_model(prompt: str) -> str:
    """Canned replies: search once, then answer from the collected notes."""
    await asyncio.sleep(0.05)
    if prompt.endswith("ANSWER otherwise."):
        return "ANSWER" if "(none)" not in prompt else "SEARCH"
    if prompt.startswith("In one sentence"):
        angle = prompt.split(" of:")[0].removeprefix("In one sentence, the ")
        return f"A note about its {angle}."
    return "Based on the notes: " + " ".join(prompt.splitlines()[2:-1])


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("question")
    args = parser.parse_args()

    store = {"question": args.question, "notes": []}
    await build(offline_model).execute(
        "agent", store, middleware=[logging_middleware]
    )
    print(store["answer"])


if __name__ == "__main__":
    asyncio.run(main())

"""Three-phase node base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, AsyncIterator, Callable, Mapping, Optional

from .config import DEFAULT_NODE_CONFIG, NodeConfig

Action = Optional[str]
"""Label returned by ``post``. ``None`` ends the run."""

END: Action = None
DEFAULT_ACTION = "default"


class Node(ABC):
    """Base class for a unit of work in a stageflow graph.

    A node never executes itself; :func:`stageflow.run` drives it through
    three phases:

    1. ``prep`` is an async generator yielding work items. Items are handed
       to ``exec`` as soon as they are yielded, so production overlaps with
       computation.
    2. ``exec`` runs once per item, concurrently across items, wrapped in
       the retry policy from ``config``. It should only read the store.
    3. ``post`` runs once with every item and its result (same index in
       both lists), writes into the store and returns the next action.

    Example:
        class Summarize(Node):
            async def prep(self, store):
                for doc in store["documents"]:
                    yield doc

            async def exec(self, store, doc):
                return await llm.summarize(doc)

            async def post(self, store, docs, summaries):
                store["summaries"] = summaries
                return "reduce"

        summarize = Summarize(max_retries=5, retry_delay=100)
        summarize.connect("reduce", Reduce())
        await run(summarize, {"documents": docs})
    """

    # Optional recovery hook: ``exec_fallback(store, item, error) -> result``.
    # Called once an item has exhausted its attempts; may be sync or async.
    exec_fallback: Callable[..., Any] | None = None

    def __init__(
        self,
        config: NodeConfig | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> None:
        if config is None:
            config = DEFAULT_NODE_CONFIG
        elif not isinstance(config, NodeConfig):
            config = NodeConfig.from_mapping(config)
        self.config: NodeConfig = config.replace(**overrides) if overrides else config
        self.params: dict[str, Any] = {}
        self._edges: dict[str, Node] = {}

    @property
    def name(self) -> str:
        """Return the class name as the node name."""
        return self.__class__.__name__

    @abstractmethod
    def prep(self, store: Any) -> AsyncIterator[Any]:
        """Yield the items to process. Implement as ``async def`` + ``yield``.

        The engine sends each yielded value back in, so ``got = yield item``
        leaves ``got`` bound to ``item``.
        """
        ...

    @abstractmethod
    async def exec(self, store: Any, item: Any) -> Any:
        """Process one item. Raise to trigger a retry."""
        ...

    @abstractmethod
    async def post(self, store: Any, items: list[Any], results: list[Any]) -> Action:
        """Write results into the store and return the next action (or END)."""
        ...

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def configure(self, **overrides: Any) -> "Node":
        """Replace selected config fields; the rest keep their values."""
        self.config = self.config.replace(**overrides)
        return self

    def set_params(self, params: Mapping[str, Any]) -> "Node":
        """Replace the node's params wholesale.

        Params are not cleared between activations; call again to reset.
        """
        self.params = dict(params)
        return self

    # ------------------------------------------------------------------ #
    # Edges
    # ------------------------------------------------------------------ #

    def connect(self, action: "str | Node", target: "Node | None" = None) -> "Node":
        """Register an outgoing edge and return this node.

        ``connect(target)`` registers the default edge, used whenever ``post``
        returns an action with no exact match. ``connect(action, target)``
        registers a labeled edge. Re-connecting a label overwrites it.
        """
        if target is None:
            action, target = DEFAULT_ACTION, action
        if not isinstance(target, Node):
            raise TypeError(
                f"connect() target must be a Node, got {type(target).__name__}"
            )
        if not isinstance(action, str):
            raise TypeError(f"Edge action must be a string, got {action!r}")
        self._edges[action] = target
        return self

    def get_edge(self, action: str) -> "Node | None":
        return self._edges.get(action)

    @property
    def edges(self) -> Mapping[str, "Node"]:
        """Read-only view of the outgoing edges."""
        return MappingProxyType(self._edges)

    def __rshift__(self, other: "Node") -> "Node":
        """Connect the default edge: ``a >> b >> c``."""
        self.connect(other)
        return other

    def __repr__(self) -> str:
        edges = ", ".join(f"{k}->{v.name}" for k, v in self._edges.items())
        return f"{self.name}(edges=[{edges}])"

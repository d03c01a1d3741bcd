"""Name-based node lookup with nested namespaces."""

from __future__ import annotations

from typing import Any, Iterator

from .errors import NodeNotFoundError
from .node import Node
from .runtime import run


class Registry:
    """Map names to start nodes and run them by name.

    Child namespaces are addressed with dotted paths, so ``"rag.index"``
    resolves to the node registered as ``index`` in the ``rag`` namespace.

    Example:
        flows = Registry()
        flows.register("chat", ChatNode())
        flows.namespace("rag").register("index", ChunkNode())

        await flows.execute("rag.index", {"documents": docs})
    """

    def __init__(self, name: str = "root") -> None:
        self.name = name
        self._nodes: dict[str, Node] = {}
        self._children: dict[str, Registry] = {}

    def register(self, name: str, node: Node) -> Node:
        """Register ``node`` under ``name`` (overwrites) and return the node."""
        _check_segment(name)
        if not isinstance(node, Node):
            raise TypeError(
                f"Registry '{self.name}' can only hold Nodes, got {type(node).__name__}"
            )
        self._nodes[name] = node
        return node

    def namespace(self, name: str) -> "Registry":
        """Return the child registry ``name``, creating it on first use."""
        _check_segment(name)
        child = self._children.get(name)
        if child is None:
            child = Registry(f"{self.name}.{name}")
            self._children[name] = child
        return child

    def get(self, name: str) -> Node | None:
        """Look up a node by (possibly dotted) name."""
        head, _, rest = name.partition(".")
        if not rest:
            return self._nodes.get(head)
        child = self._children.get(head)
        return child.get(rest) if child is not None else None

    def names(self) -> list[str]:
        """Names registered directly in this namespace."""
        return list(self._nodes)

    async def execute(self, name: str, store: Any, **run_kwargs: Any) -> None:
        """Run the graph registered under ``name`` with ``store``.

        Raises:
            NodeNotFoundError: If nothing is registered under ``name``.
        """
        node = self.get(name)
        if node is None:
            raise NodeNotFoundError(name, self.name)
        await run(node, store, **run_kwargs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __repr__(self) -> str:
        return (
            f"Registry({self.name!r}, nodes={sorted(self._nodes)}, "
            f"namespaces={sorted(self._children)})"
        )


def _check_segment(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Registry names must be non-empty strings, got {name!r}")
    if "." in name:
        raise ValueError(
            f"Registry name '{name}' may not contain '.'; use namespace() instead."
        )

"""Core error types for stageflow."""

from __future__ import annotations


class StageFlowError(Exception):
    """Base exception for all stageflow errors."""

    pass


class NodeConfigError(StageFlowError, ValueError):
    """Raised when a node configuration value is invalid."""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        super().__init__(f"Invalid node config '{field_name}': {reason}")


class NodeNotFoundError(StageFlowError, KeyError):
    """Raised when a registry lookup does not resolve to a node.

    Attributes:
        name: The (possibly dotted) name that was looked up.
        registry: Name of the registry the lookup started from.
    """

    def __init__(self, name: str, registry: str):
        self.name = name
        self.registry = registry
        super().__init__(f"Node '{name}' not found in registry '{registry}'")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return self.args[0]

"""stageflow - Tiny graph engine for staged, retryable async work."""

from .core.config import NodeConfig
from .core.errors import NodeConfigError, NodeNotFoundError, StageFlowError
from .core.middleware import Middleware, logging_middleware, timing_middleware
from .core.node import DEFAULT_ACTION, END, Action, Node
from .core.registry import Registry
from .core.runtime import run, run_sync

__version__ = "0.1.0"

__all__ = [
    # Core
    "Action",
    "DEFAULT_ACTION",
    "END",
    "Node",
    "NodeConfig",
    "run",
    "run_sync",
    # Composition
    "Middleware",
    "Registry",
    "logging_middleware",
    "timing_middleware",
    # Errors
    "NodeConfigError",
    "NodeNotFoundError",
    "StageFlowError",
]

"""Core components."""

from .config import DEFAULT_NODE_CONFIG, NodeConfig
from .errors import NodeConfigError, NodeNotFoundError, StageFlowError
from .middleware import Middleware, compose, logging_middleware, timing_middleware
from .node import DEFAULT_ACTION, END, Action, Node
from .registry import Registry
from .retry import execute_with_retry
from .runtime import run, run_sync

__all__ = [
    "Action",
    "DEFAULT_ACTION",
    "DEFAULT_NODE_CONFIG",
    "END",
    "Middleware",
    "Node",
    "NodeConfig",
    "NodeConfigError",
    "NodeNotFoundError",
    "Registry",
    "StageFlowError",
    "compose",
    "execute_with_retry",
    "logging_middleware",
    "run",
    "run_sync",
    "timing_middleware",
]

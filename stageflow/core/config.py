"""Per-node reliability settings."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from .errors import NodeConfigError

# Accepted spellings for each field, including camelCase keys from JSON configs.
_ALIASES = {
    "max_retries": "max_retries",
    "maxRetries": "max_retries",
    "max_attempts": "max_retries",
    "maxAttempts": "max_retries",
    "retry_delay": "retry_delay",
    "retryDelay": "retry_delay",
    "retryDelayMs": "retry_delay",
    "timeout": "timeout",
    "timeoutMs": "timeout",
    "enforce_timeout": "enforce_timeout",
    "enforceTimeout": "enforce_timeout",
}


@dataclass(frozen=True)
class NodeConfig:
    """Retry and timeout settings for a node.

    Args:
        max_retries: Total number of exec attempts per item (>= 1).
        retry_delay: Milliseconds to wait between failed attempts (>= 0).
        timeout: Per-attempt budget in milliseconds (> 0).
        enforce_timeout: When False (the default) ``timeout`` is advisory only.
            When True each exec attempt is cancelled once it exceeds
            ``timeout`` and counts as a failed attempt.
    """

    max_retries: int = 3
    retry_delay: int = 2000
    timeout: int = 60000
    enforce_timeout: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise NodeConfigError("max_retries", "must be an integer")
        if self.max_retries < 1:
            raise NodeConfigError(
                "max_retries", f"must be at least 1, got {self.max_retries}"
            )
        for name in ("retry_delay", "timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise NodeConfigError(
                    name, f"must be a number, got {type(value).__name__}"
                )
        if self.retry_delay < 0:
            raise NodeConfigError(
                "retry_delay", f"must be non-negative, got {self.retry_delay}"
            )
        if self.timeout <= 0:
            raise NodeConfigError("timeout", f"must be positive, got {self.timeout}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "NodeConfig":
        """Build a config from a mapping of overrides on top of the defaults."""
        return cls().replace(**mapping)

    def replace(self, **overrides: Any) -> "NodeConfig":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **_normalize(overrides))

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_NODE_CONFIG = NodeConfig()


def _normalize(overrides: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in _ALIASES:
            raise NodeConfigError(key, "unknown config field")
        normalized[_ALIASES[key]] = value
    return normalized

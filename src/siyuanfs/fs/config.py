"""Connection and cache configuration values.

The host owns configuration storage; these dataclasses are handed to the
client and facade at construction (or via ``update_config``) and are never
read from global state.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_TIMEOUT: float = 10.0
"""Seconds before a remote call is abandoned and reported as a NetworkError."""

DEFAULT_TTL: float = 300.0
"""Lifetime of cached content, metadata and identifier lookups (seconds)."""

DEFAULT_SWEEP_INTERVAL: float = 60.0
"""How often expired cache entries are swept (seconds)."""

DEFAULT_FLUSH_DELAY: float = 0.005
"""Batching window for buffered change events (seconds)."""


@dataclass
class ConnectionConfig:
    """Where and how to reach one remote SiYuan instance."""

    base_url: str
    """Server root, e.g. ``"http://127.0.0.1:6806"``."""

    api_token: str | None = None
    """Sent as ``Authorization: Token <api_token>`` when set."""

    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        self.base_url = self.base_url.strip().rstrip("/")
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Token {self.api_token}"
        return headers


@dataclass
class CacheConfig:
    """Tuning knobs for the per-instance caches and event batching."""

    ttl: float = DEFAULT_TTL
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL
    flush_delay: float = DEFAULT_FLUSH_DELAY

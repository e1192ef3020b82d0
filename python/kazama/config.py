"""Client configuration, with environment variable overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_CONNECTIONS = 100


def get_env_int(name: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not an integer")
        return default


def get_env_float(name: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not a number")
        return default


@dataclass
class ClientConfig:
    """
    Connection settings for AsyncClient.

    Attributes:
        base_url: Root URL of the model server
        timeout: Seconds allowed for a buffered call, or for each connect
            and line read of a streaming call
        max_connections: Size of the shared connection pool
    """
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_connections: int = DEFAULT_MAX_CONNECTIONS

    @classmethod
    def from_env(
        cls,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_connections: Optional[int] = None,
    ) -> "ClientConfig":
        """
        Build a config from KAZAMA_* environment variables.

        Values passed in take precedence; the environment is only read for
        the fields left as None.
        """
        if base_url is None:
            base_url = os.environ.get("KAZAMA_BASE_URL", DEFAULT_BASE_URL)
        if timeout is None:
            timeout = get_env_float("KAZAMA_TIMEOUT", DEFAULT_TIMEOUT)
        if max_connections is None:
            max_connections = get_env_int("KAZAMA_MAX_CONNECTIONS", DEFAULT_MAX_CONNECTIONS)
        return cls(base_url=base_url, timeout=timeout, max_connections=max_connections)

    def validate(self) -> "ClientConfig":
        if not self.base_url or not self.base_url.strip():
            raise InvalidArgument("base_url must not be empty")
        if self.timeout <= 0:
            raise InvalidArgument(f"timeout must be positive, got {self.timeout}")
        if self.max_connections <= 0:
            raise InvalidArgument(
                f"max_connections must be positive, got {self.max_connections}"
            )
        return self

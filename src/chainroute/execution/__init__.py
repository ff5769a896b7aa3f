"""
Execution backends for chainroute.

Configuration via environment:
    CHAINROUTE_EXECUTION_BACKEND=simulated  # or 'http'
    CHAINROUTE_EXECUTION_URL=https://executor.example.com

Example:
    >>> from chainroute.execution import get_execution_backend, FixedOutcomeBackend
    >>>
    >>> backend = get_execution_backend("simulated")
    >>> backend = FixedOutcomeBackend(success=False)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from chainroute.core.exceptions import ConfigurationError
from chainroute.execution.base import ExecutionBackend
from chainroute.execution.fixed import FixedOutcomeBackend, ScriptedBackend
from chainroute.execution.http import HttpExecutionBackend
from chainroute.execution.simulated import SimulatedBackend

if TYPE_CHECKING:
    from chainroute.core.config import Config


def get_execution_backend(
    name: str,
    config: Config | None = None,
    endpoint_resolver: Callable[[str], str | None] | None = None,
) -> ExecutionBackend:
    """
    Build an execution backend by name.

    Args:
        name: "simulated" or "http"
        config: Configuration supplying the http backend's URL and timeout
        endpoint_resolver: Provider id to endpoint lookup for the http backend

    Raises:
        ConfigurationError: If the name is unknown or http settings are missing
    """
    if name == "simulated":
        return SimulatedBackend()

    if name == "http":
        if config is None or not config.execution_url:
            raise ConfigurationError("execution_url is required for the http execution backend")
        return HttpExecutionBackend(
            base_url=config.execution_url,
            timeout=config.http_timeout,
            max_attempts=config.http_max_attempts,
            endpoint_resolver=endpoint_resolver,
        )

    raise ConfigurationError(
        f"Unknown execution backend: '{name}'. Available: simulated, http"
    )


__all__ = [
    "ExecutionBackend",
    "FixedOutcomeBackend",
    "HttpExecutionBackend",
    "ScriptedBackend",
    "SimulatedBackend",
    "get_execution_backend",
]

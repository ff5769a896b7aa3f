"""
Configuration management for chainroute.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any

from chainroute.core.exceptions import ConfigurationError


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {name} is not set")
    return value


def _parse_number(name: str, raw: Any, kind: type) -> Any:
    try:
        return kind(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}", details={"expected": kind.__name__}
        ) from e


def _parse_callers(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Config:
    """Runtime configuration."""

    env: str = "development"
    log_level: str = "INFO"

    # Execution backend: "simulated" or "http"
    execution_backend: str = "simulated"
    execution_url: str | None = None
    http_timeout: float = 30.0  # seconds
    http_max_attempts: int = 3  # transient-error attempts per execution call

    # Payment lifecycle
    max_retries: int = 3
    scheduler_interval: float = 60.0  # seconds between pending sweeps

    # Identities allowed to call mutating operations
    authorized_callers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.execution_backend == "http" and not self.execution_url:
            raise ConfigurationError("execution_url is required for the http execution backend")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")
        if self.scheduler_interval <= 0:
            raise ConfigurationError("scheduler_interval must be positive")
        if self.http_max_attempts < 1:
            raise ConfigurationError("http_max_attempts must be at least 1")

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        env = overrides.get("env") or _get_env_var("CHAINROUTE_ENV", default=cls.env)
        log_level = overrides.get("log_level") or _get_env_var(
            "CHAINROUTE_LOG_LEVEL", default=cls.log_level
        )
        execution_backend = overrides.get("execution_backend") or _get_env_var(
            "CHAINROUTE_EXECUTION_BACKEND", default=cls.execution_backend
        )
        execution_url = overrides.get("execution_url") or _get_env_var("CHAINROUTE_EXECUTION_URL")

        http_timeout = overrides.get("http_timeout")
        if http_timeout is None:
            http_timeout = _parse_number(
                "CHAINROUTE_HTTP_TIMEOUT",
                _get_env_var("CHAINROUTE_HTTP_TIMEOUT", default=str(cls.http_timeout)),
                float,
            )

        max_retries = overrides.get("max_retries")
        if max_retries is None:
            max_retries = _parse_number(
                "CHAINROUTE_MAX_RETRIES",
                _get_env_var("CHAINROUTE_MAX_RETRIES", default=str(cls.max_retries)),
                int,
            )

        scheduler_interval = overrides.get("scheduler_interval")
        if scheduler_interval is None:
            scheduler_interval = _parse_number(
                "CHAINROUTE_SCHEDULER_INTERVAL",
                _get_env_var("CHAINROUTE_SCHEDULER_INTERVAL", default=str(cls.scheduler_interval)),
                float,
            )

        authorized_callers = overrides.get("authorized_callers")
        if authorized_callers is None:
            authorized_callers = _parse_callers(_get_env_var("CHAINROUTE_AUTHORIZED_CALLERS"))

        return cls(
            env=env,  # type: ignore
            log_level=log_level,  # type: ignore
            execution_backend=execution_backend,  # type: ignore
            execution_url=execution_url,
            http_timeout=http_timeout,
            http_max_attempts=overrides.get("http_max_attempts", cls.http_max_attempts),
            max_retries=max_retries,
            scheduler_interval=scheduler_interval,
            authorized_callers=tuple(authorized_callers),
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(updates)
        return Config(**current)

"""
Exception hierarchy for chainroute.

All package-specific exceptions inherit from ChainRouteError for easy catching.
"""

from __future__ import annotations

from typing import Any


class ChainRouteError(Exception):
    """
    Base exception for all chainroute errors.

    Catch this to handle any routing or processing failure.

    Example:
        >>> try:
        ...     await client.process_payment("pay-1")
        ... except ChainRouteError as e:
        ...     print(f"Routing error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ChainRouteError):
    """
    Configuration is missing or invalid.

    Raised when:
    - Environment variables hold values that cannot be parsed
    - An unknown execution backend is requested
    """

    pass


class ValidationError(ChainRouteError):
    """
    Input validation error.

    Raised when:
    - Required fields are empty
    - Amounts, costs or scores are out of range
    """

    pass


class DuplicateIdError(ChainRouteError):
    """An entity with the same id is already known."""

    def __init__(
        self,
        message: str,
        entity_id: str,
        kind: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.entity_id = entity_id
        self.kind = kind


class NotFoundError(ChainRouteError):
    """No entity with the given id exists where the operation looks for it."""

    def __init__(
        self,
        message: str,
        entity_id: str,
        kind: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.entity_id = entity_id
        self.kind = kind


class InvalidStateError(ChainRouteError):
    """
    Operation is illegal for the payment's current status.

    Raised when:
    - Cancelling a payment that is being processed
    """

    def __init__(
        self,
        message: str,
        payment_id: str,
        status: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.payment_id = payment_id
        self.status = status

    def __str__(self) -> str:
        return f"{self.message} (payment: {self.payment_id}, status: {self.status})"


class UnauthorizedError(ChainRouteError):
    """Caller is not on the allow-list for a mutating operation."""

    def __init__(self, message: str, caller: str | None = None) -> None:
        super().__init__(message)
        self.caller = caller


class RetryExhaustedError(ChainRouteError):
    """
    Payment failed on its final allowed attempt.

    The payment has been moved to the archive with status FAILED.
    """

    def __init__(
        self,
        message: str,
        payment_id: str,
        attempts: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.payment_id = payment_id
        self.attempts = attempts

    def __str__(self) -> str:
        return f"{self.message} (payment: {self.payment_id}, attempts: {self.attempts})"


class ExecutionError(ChainRouteError):
    """
    Execution backend could not complete an attempt.

    Raised when:
    - The execution service is unreachable after transient retries
    - The execution service returns an unexpected response
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url

    def is_rate_limited(self) -> bool:
        """Check if this is a rate limit error."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and 500 <= self.status_code < 600

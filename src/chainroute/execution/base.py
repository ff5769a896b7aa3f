"""
Base execution backend interface.

The payment processor decides when to attempt a payment; an execution
backend performs the attempt (signing, broadcast, confirmation) and reports
whether it succeeded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chainroute.core.types import PaymentRequest


class ExecutionBackend(ABC):
    """
    Abstract base class for execution backends.

    Implementations:
    - FixedOutcomeBackend / ScriptedBackend: deterministic outcomes for tests
    - SimulatedBackend: synthetic ~90% success derived from the payment id
    - HttpExecutionBackend: delegates to a remote execution service
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend name used in logs and configuration."""
        ...

    @abstractmethod
    async def execute(self, payment: PaymentRequest) -> bool:
        """
        Attempt to execute a payment.

        Args:
            payment: Payment in PROCESSING state

        Returns:
            True if the payment executed, False if the attempt failed

        Raises:
            ExecutionError: If the outcome could not be determined
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None

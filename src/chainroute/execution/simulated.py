"""
SimulatedBackend - Synthetic outcomes for demos and local development.

The outcome depends only on the payment id: a payment fails when the
SHA-256 digest of its id is divisible by 10, so roughly nine in ten ids
succeed and a given id always behaves the same way.
"""

from __future__ import annotations

import hashlib

from chainroute.core.logging import get_logger
from chainroute.core.types import PaymentRequest
from chainroute.execution.base import ExecutionBackend

FAILURE_MODULUS = 10


class SimulatedBackend(ExecutionBackend):
    """Hash-based execution simulator."""

    def __init__(self) -> None:
        self._logger = get_logger("execution.simulated")

    @property
    def name(self) -> str:
        return "simulated"

    @staticmethod
    def would_succeed(payment_id: str) -> bool:
        digest = hashlib.sha256(payment_id.encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big") % FAILURE_MODULUS != 0

    async def execute(self, payment: PaymentRequest) -> bool:
        success = self.would_succeed(payment.id)
        self._logger.debug(
            f"Simulated {payment.chain} payment {payment.id} via {payment.provider_id}: "
            f"{'ok' if success else 'failed'}"
        )
        return success

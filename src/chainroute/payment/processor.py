"""
PaymentProcessor - Payment lifecycle and retry policy.

Lifecycle:
    PENDING -> PROCESSING -> COMPLETED
                          -> PENDING   (failed attempt, retries left)
                          -> FAILED    (failed attempt, retries exhausted)
    PENDING -> CANCELLED

Payments live in the pending set until they reach a terminal status, then
move to the archive. An id is unique across both sets.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING

from chainroute.core.exceptions import (
    DuplicateIdError,
    ExecutionError,
    InvalidStateError,
    NotFoundError,
    RetryExhaustedError,
)
from chainroute.core.logging import get_logger
from chainroute.core.types import PaymentRequest, PaymentStatus, ProcessOutcome

if TYPE_CHECKING:
    from chainroute.execution.base import ExecutionBackend

MAX_RETRIES = 3


class PaymentProcessor:
    """
    Manages payments from submission to a terminal status.

    Attempts on the same payment are serialized with a per-payment lock;
    attempts on different payments may overlap while the execution backend
    is awaited.
    """

    def __init__(
        self,
        backend: ExecutionBackend,
        max_retries: int = MAX_RETRIES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            backend: Performs the actual execution of each attempt
            max_retries: Failed attempts that are retried before giving up
            clock: Source of epoch-second timestamps
        """
        self._backend = backend
        self._max_retries = max_retries
        self._clock = clock
        self._pending: dict[str, PaymentRequest] = {}
        self._archive: dict[str, PaymentRequest] = {}
        self._retry_counts: dict[str, int] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._logger = get_logger("processor")

    @property
    def backend(self) -> ExecutionBackend:
        return self._backend

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def submit(self, payment: PaymentRequest) -> str:
        """
        Accept a payment for processing.

        The payment's timestamp and status are reset; the stored copy is
        owned by the processor.

        Returns:
            The payment id

        Raises:
            DuplicateIdError: If the id is pending or archived
        """
        if payment.id in self._pending or payment.id in self._archive:
            raise DuplicateIdError(
                f"Payment ID already exists: {payment.id}",
                entity_id=payment.id,
                kind="payment",
            )

        stored = replace(payment, timestamp=self._clock(), status=PaymentStatus.PENDING)
        self._pending[stored.id] = stored
        self._retry_counts[stored.id] = 0
        self._logger.info(
            f"Payment {stored.id} submitted ({stored.amount} on {stored.chain} via {stored.provider_id})"
        )
        return stored.id

    async def process(self, payment_id: str) -> ProcessOutcome:
        """
        Run one execution attempt for a pending payment.

        An unexpected backend exception counts as a failed attempt and is
        re-raised once the payment is back in PENDING (or FAILED). A cancelled
        attempt returns the payment to PENDING without using a retry.

        Returns:
            COMPLETED on success, RETRY_SCHEDULED if the attempt failed and
            the payment went back to PENDING

        Raises:
            NotFoundError: If the payment is not pending
            RetryExhaustedError: If the attempt failed with no retries left
        """
        if payment_id not in self._pending:
            raise NotFoundError(
                f"Payment not found: {payment_id}", entity_id=payment_id, kind="payment"
            )

        lock = self._locks.setdefault(payment_id, asyncio.Lock())
        async with lock:
            # Another attempt may have finished or cancelled it while we waited
            payment = self._pending.get(payment_id)
            if payment is None or payment.status != PaymentStatus.PENDING:
                raise NotFoundError(
                    f"Payment not found: {payment_id}", entity_id=payment_id, kind="payment"
                )

            payment.status = PaymentStatus.PROCESSING
            self._logger.info(
                f"Processing payment {payment_id}", extra={"payment_id": payment_id}
            )

            # Every exit path below moves the payment out of PROCESSING
            try:
                success = await self._backend.execute(replace(payment))
            except ExecutionError as e:
                self._logger.warning(
                    f"Execution error for payment {payment_id}: {e}", extra={"payment_id": payment_id}
                )
                success = False
            except Exception:
                self._logger.exception(
                    f"Unexpected error executing payment {payment_id}", extra={"payment_id": payment_id}
                )
                self._handle_failure(payment_id)
                raise
            except BaseException:
                # Interrupted, not failed: no retry is consumed
                payment.status = PaymentStatus.PENDING
                self._logger.warning(
                    f"Attempt on payment {payment_id} interrupted", extra={"payment_id": payment_id}
                )
                raise

            if success:
                payment.status = PaymentStatus.COMPLETED
                self._archive_payment(payment_id)
                self._logger.info(
                    f"Payment {payment_id} completed", extra={"payment_id": payment_id}
                )
                return ProcessOutcome.COMPLETED

            return self._handle_failure(payment_id)

    def _handle_failure(self, payment_id: str) -> ProcessOutcome:
        payment = self._pending[payment_id]
        retries = self._retry_counts.get(payment_id, 0)

        if retries < self._max_retries:
            self._retry_counts[payment_id] = retries + 1
            payment.status = PaymentStatus.PENDING
            self._logger.warning(
                f"Payment {payment_id} attempt failed, retry {retries + 1}/{self._max_retries} scheduled",
                extra={"payment_id": payment_id},
            )
            return ProcessOutcome.RETRY_SCHEDULED

        payment.status = PaymentStatus.FAILED
        self._archive_payment(payment_id)
        self._logger.error(
            f"Payment {payment_id} failed after {retries} retries", extra={"payment_id": payment_id}
        )
        raise RetryExhaustedError(
            "Payment failed after maximum retries",
            payment_id=payment_id,
            attempts=retries + 1,
        )

    def cancel(self, payment_id: str) -> None:
        """
        Cancel a pending payment.

        Raises:
            NotFoundError: If the payment is not pending
            InvalidStateError: If an attempt is in flight
        """
        payment = self._pending.get(payment_id)
        if payment is None:
            raise NotFoundError(
                f"Payment not found: {payment_id}", entity_id=payment_id, kind="payment"
            )
        if payment.status == PaymentStatus.PROCESSING:
            raise InvalidStateError(
                "Cannot cancel payment that is already processing",
                payment_id=payment_id,
                status=payment.status.value,
            )

        payment.status = PaymentStatus.CANCELLED
        self._archive_payment(payment_id)
        self._logger.info(
            f"Payment {payment_id} cancelled", extra={"payment_id": payment_id}
        )

    def _archive_payment(self, payment_id: str) -> None:
        payment = self._pending.pop(payment_id)
        self._archive[payment_id] = payment
        self._retry_counts.pop(payment_id, None)
        self._locks.pop(payment_id, None)

    def get_status(self, payment_id: str) -> PaymentStatus | None:
        payment = self.get_payment(payment_id)
        return payment.status if payment else None

    def get_payment(self, payment_id: str) -> PaymentRequest | None:
        """Copy of a pending or archived payment."""
        payment = self._pending.get(payment_id) or self._archive.get(payment_id)
        return replace(payment) if payment else None

    def retry_count(self, payment_id: str) -> int:
        """Retries used so far by a pending payment (0 once archived)."""
        return self._retry_counts.get(payment_id, 0)

    def list_pending(self) -> list[PaymentRequest]:
        """Snapshot of pending payments, oldest submission first."""
        return [replace(p) for p in sorted(self._pending.values(), key=lambda p: (p.timestamp, p.id))]

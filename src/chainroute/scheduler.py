"""
PendingPaymentScheduler - Periodic re-processing of pending payments.

Every ``interval`` seconds the scheduler attempts each payment still in
PENDING (fresh submissions and scheduled retries alike). When automatic
optimization is enabled it also reviews rebalancing suggestions every
``rebalance_frequency`` seconds.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from chainroute.core.logging import get_logger
from chainroute.core.types import ProcessOutcome, RebalancingSuggestion

if TYPE_CHECKING:
    from chainroute.client import ChainRoute

DEFAULT_INTERVAL = 60.0


class PendingPaymentScheduler:
    """Asyncio background task driving ChainRoute.process_all_pending()."""

    def __init__(
        self,
        client: ChainRoute,
        interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            client: Client whose pending payments are swept
            interval: Seconds between sweeps (config.scheduler_interval if omitted)
            clock: Monotonic clock used to pace rebalancing reviews
        """
        self._client = client
        self._interval = interval if interval is not None else client.config.scheduler_interval
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._sweep: asyncio.Task[dict[str, ProcessOutcome | str]] | None = None
        self._stopping = False
        self._sweep_lock = asyncio.Lock()
        self._last_rebalance: float | None = None
        self._logger = get_logger("scheduler")

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background loop. Calling start() twice is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="chainroute-scheduler")
        self._logger.info(f"Scheduler started (interval: {self._interval}s)")

    async def stop(self) -> None:
        """
        Stop the loop.

        A sweep in flight finishes its current attempt and skips the payments
        it has not reached yet; attempts are never cancelled.
        """
        if self._task is None:
            return
        self._stopping = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        if self._sweep is not None and not self._sweep.done():
            await self._sweep
        self._task = None
        self._sweep = None
        self._stopping = False
        self._logger.info("Scheduler stopped")

    async def _run(self) -> None:
        while not self._stopping:
            await asyncio.sleep(self._interval)
            self._sweep = asyncio.create_task(self.run_once())
            await asyncio.shield(self._sweep)

    async def run_once(self) -> dict[str, ProcessOutcome | str]:
        """Run one sweep now. Overlapping sweeps wait for each other."""
        async with self._sweep_lock:
            results = await self._client.process_all_pending(
                should_stop=lambda: self._stopping
            )
            if results:
                completed = sum(1 for r in results.values() if r == ProcessOutcome.COMPLETED)
                self._logger.info(
                    f"Sweep processed {len(results)} payment(s), {completed} completed"
                )
            self._review_rebalancing()
            return results

    def _review_rebalancing(self) -> list[RebalancingSuggestion]:
        settings = self._client.optimizer.settings
        if not settings.auto_optimization_enabled:
            return []

        now = self._clock()
        if self._last_rebalance is not None and now - self._last_rebalance < settings.rebalance_frequency:
            return []
        self._last_rebalance = now

        suggestions = self._client.get_rebalancing_suggestions()
        for s in suggestions:
            self._logger.warning(
                f"Rebalancing suggested: {s.from_chain} -> {s.to_chain} "
                f"({s.reason}, potential savings {s.potential_savings:.4f})"
            )
        return suggestions

"""ChainRoute - Main entry point wiring registry, optimizer and processor."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from chainroute.auth.allowlist import CallerAllowList
from chainroute.core.config import Config
from chainroute.core.exceptions import ChainRouteError, RetryExhaustedError
from chainroute.core.logging import configure_logging, get_logger
from chainroute.core.types import (
    AmountType,
    OptimizationSettings,
    PaymentRequest,
    PaymentStatus,
    ProcessOutcome,
    Provider,
    RebalancingSuggestion,
    ScoreSelection,
    UsageMetrics,
)
from chainroute.execution import ExecutionBackend, get_execution_backend
from chainroute.optimizer.optimizer import CostOptimizer
from chainroute.payment.processor import PaymentProcessor
from chainroute.registry.registry import ProviderRegistry


class ChainRoute:
    """
    Main client for chainroute.

    Owns one registry, one optimizer and one processor and closes the
    feedback loop between them: every processed attempt is reported to the
    optimizer's usage statistics and the registry's performance history once
    its outcome is known.

    Mutating operations take a ``caller`` identity checked against the
    allow-list; ``None`` is the anonymous caller and is always permitted.
    """

    def __init__(
        self,
        config: Config | None = None,
        backend: ExecutionBackend | None = None,
        settings: OptimizationSettings | None = None,
        selection: ScoreSelection = ScoreSelection.LOWEST,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Runtime configuration (loaded from the environment if omitted)
            backend: Execution backend (built from config if omitted)
            settings: Initial optimization settings
            selection: Score direction used by the registry's select_best
            clock: Source of epoch-second timestamps
        """
        self._config = config or Config.from_env()

        configure_logging(level=self._config.log_level)
        self._logger = get_logger("client")

        self._clock = clock
        self._registry = ProviderRegistry(selection=selection, clock=clock)
        self._optimizer = CostOptimizer(self._registry, settings=settings, clock=clock)
        self._allowlist = CallerAllowList(self._config.authorized_callers)

        if backend is None:
            backend = get_execution_backend(
                self._config.execution_backend,
                self._config,
                endpoint_resolver=self._provider_endpoint,
            )
        self._processor = PaymentProcessor(
            backend, max_retries=self._config.max_retries, clock=clock
        )
        self._logger.info(
            f"Initialized chainroute (env: {self._config.env}, backend: {backend.name})"
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def optimizer(self) -> CostOptimizer:
        return self._optimizer

    @property
    def processor(self) -> PaymentProcessor:
        return self._processor

    @property
    def allowlist(self) -> CallerAllowList:
        return self._allowlist

    async def __aenter__(self) -> ChainRoute:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._processor.backend.close()

    def _provider_endpoint(self, provider_id: str) -> str | None:
        provider = self._registry.get(provider_id)
        return provider.api_endpoint if provider else None

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def register_provider(self, provider: Provider, caller: str | None = None) -> str:
        self._allowlist.require(caller)
        return self._registry.register(provider)

    def get_provider(self, provider_id: str) -> Provider | None:
        return self._registry.get(provider_id)

    def list_providers(self) -> list[Provider]:
        return self._registry.list()

    def deactivate_provider(self, provider_id: str, caller: str | None = None) -> None:
        self._allowlist.require(caller)
        self._registry.deactivate(provider_id)

    def select_best_provider(self, chain: str, max_cost: AmountType) -> Provider | None:
        return self._registry.select_best(chain, max_cost)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def submit_payment(self, payment: PaymentRequest, caller: str | None = None) -> str:
        self._allowlist.require(caller)
        return self._processor.submit(payment)

    async def process_payment(self, payment_id: str, caller: str | None = None) -> ProcessOutcome:
        """
        Run one attempt for a pending payment and report its outcome.

        Returns:
            COMPLETED, or RETRY_SCHEDULED when the attempt failed but will be retried

        Raises:
            UnauthorizedError: If the caller is not allowed
            NotFoundError: If the payment is not pending
            RetryExhaustedError: If the payment failed for the last time
        """
        self._allowlist.require(caller)
        payment = self._processor.get_payment(payment_id)

        started = time.perf_counter()
        try:
            outcome = await self._processor.process(payment_id)
        except RetryExhaustedError:
            self._report_attempt(payment, False, time.perf_counter() - started)
            raise
        except ChainRouteError:
            raise
        except Exception:
            # The backend crashed mid-attempt; the processor counted it as a failure
            self._report_attempt(payment, False, time.perf_counter() - started)
            raise

        self._report_attempt(
            payment, outcome == ProcessOutcome.COMPLETED, time.perf_counter() - started
        )
        return outcome

    def _report_attempt(
        self, payment: PaymentRequest | None, success: bool, response_time: float
    ) -> None:
        if payment is None:
            return

        provider = self._registry.get(payment.provider_id)
        cost = provider.cost_per_request if provider else 0
        self._optimizer.record_usage(
            payment.chain, payment.provider_id, cost, success, response_time
        )
        if provider is not None:
            self._registry.record_performance(provider.id, response_time)
        else:
            self._logger.warning(
                f"Payment {payment.id} references unknown provider {payment.provider_id}"
            )

    async def process_all_pending(
        self, should_stop: Callable[[], bool] | None = None
    ) -> dict[str, ProcessOutcome | str]:
        """
        Attempt every payment currently waiting in PENDING.

        Per-payment errors are logged and reported in the result instead of
        stopping the sweep. ``should_stop`` is checked before each payment so
        a sweep can end early without interrupting an attempt.

        Returns:
            Mapping of payment id to outcome, or to the error text
        """
        results: dict[str, ProcessOutcome | str] = {}
        for payment in self._processor.list_pending():
            if should_stop is not None and should_stop():
                break
            if payment.status != PaymentStatus.PENDING:
                continue
            try:
                results[payment.id] = await self.process_payment(payment.id)
            except RetryExhaustedError as e:
                results[payment.id] = str(e)
            except Exception as e:
                self._logger.error(f"Scheduled processing of {payment.id} failed: {e}")
                results[payment.id] = str(e)
        return results

    def cancel_payment(self, payment_id: str, caller: str | None = None) -> None:
        self._allowlist.require(caller)
        self._processor.cancel(payment_id)

    def get_payment_status(self, payment_id: str) -> PaymentStatus | None:
        return self._processor.get_status(payment_id)

    def list_pending(self) -> list[PaymentRequest]:
        return self._processor.list_pending()

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def optimize_route(self, chain: str, amount: AmountType) -> str | None:
        return self._optimizer.select_route(chain, amount)

    def get_rebalancing_suggestions(self) -> list[RebalancingSuggestion]:
        return self._optimizer.suggest_rebalancing()

    def record_usage(
        self,
        chain: str,
        provider_id: str,
        cost: AmountType,
        success: bool,
        response_time: float,
        caller: str | None = None,
    ) -> None:
        self._allowlist.require(caller)
        self._optimizer.record_usage(chain, provider_id, cost, success, response_time)

    def get_usage_metrics(self, window_seconds: float) -> UsageMetrics:
        return self._optimizer.usage_metrics(window_seconds)

    def update_settings(self, settings: OptimizationSettings, caller: str | None = None) -> None:
        self._allowlist.require(caller)
        self._optimizer.update_settings(settings)

    # ------------------------------------------------------------------
    # Authorization & health
    # ------------------------------------------------------------------

    def add_authorized_caller(self, identity: str, caller: str | None = None) -> None:
        self._allowlist.require(caller)
        self._allowlist.add(identity)

    def remove_authorized_caller(self, identity: str, caller: str | None = None) -> None:
        self._allowlist.require(caller)
        self._allowlist.remove(identity)

    def health_check(self) -> str:
        return f"chainroute is healthy. Timestamp: {int(self._clock())}"

    def stats(self) -> dict[str, Any]:
        """Compact summary for dashboards and logs."""
        return {
            "providers": len(self._registry),
            "active_providers": sum(1 for p in self._registry.list() if p.is_active),
            "pending_payments": len(self._processor.list_pending()),
            "tracked_chains": sorted(self._optimizer.all_chain_stats()),
        }

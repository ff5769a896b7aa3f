"""
CostOptimizer - Usage statistics, route selection and rebalancing advice.

Statistics are folded in one usage event at a time: the usage history is a
bounded FIFO, and per-chain averages are streaming means that are never
recomputed from raw history.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from decimal import Decimal

from chainroute.core.exceptions import ValidationError
from chainroute.core.logging import get_logger
from chainroute.core.types import (
    AmountType,
    ChainCostStats,
    OptimizationSettings,
    Provider,
    RebalancingSuggestion,
    UsageMetrics,
    UsageRecord,
    to_decimal,
)
from chainroute.registry.registry import ProviderRegistry

# Usage records kept in memory
USAGE_HISTORY_SIZE = 1000

# Success rate assumed for a chain with no recorded usage
DEFAULT_CHAIN_SUCCESS_RATE = 0.5

COST_WEIGHT = 0.4
RELIABILITY_WEIGHT = 0.3
HISTORY_WEIGHT = 0.3

# cost_efficiency is reported as successes per million cost units
EFFICIENCY_SCALE = 1_000_000

LOW_SUCCESS_REASON = "Low success rate"


class CostOptimizer:
    """
    Route selection driven by provider cost, provider reliability and the
    observed success rate of the target chain.

    All three score terms measure badness, so the lowest score wins.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        settings: OptimizationSettings | None = None,
        history_size: int = USAGE_HISTORY_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            registry: Provider registry consulted for route candidates
            settings: Initial optimization settings (defaults if omitted)
            history_size: Capacity of the usage ring buffer
            clock: Source of epoch-second timestamps
        """
        self._registry = registry
        self._settings = settings or OptimizationSettings()
        self._usage: deque[UsageRecord] = deque(maxlen=history_size)
        self._chain_stats: dict[str, ChainCostStats] = {}
        self._clock = clock
        self._logger = get_logger("optimizer")

    @property
    def settings(self) -> OptimizationSettings:
        return self._settings

    def update_settings(self, settings: OptimizationSettings) -> None:
        """
        Replace the active settings.

        Out-of-range values are accepted as given; each one is logged.
        """
        for problem in settings.validation_errors():
            self._logger.warning(f"Accepted out-of-range optimization setting: {problem}")
        self._settings = replace(settings, preferred_chains=list(settings.preferred_chains))
        self._logger.info("Optimization settings updated")

    # ------------------------------------------------------------------
    # Route selection
    # ------------------------------------------------------------------

    def select_route(self, chain: str, amount: AmountType) -> str | None:
        """
        Select the provider id to route a payment of ``amount`` on ``chain``.

        Returns:
            Provider id, or None if no provider qualifies

        Raises:
            ValidationError: If amount is not positive
        """
        amount_decimal = to_decimal(amount)
        if amount_decimal <= 0:
            raise ValidationError(
                "Amount must be positive to score a route", details={"amount": str(amount)}
            )

        candidates = self._candidates(chain)
        if not candidates:
            self._logger.info(f"No route for chain {chain}")
            return None

        # Candidates arrive sorted by id, so min() breaks ties on the smallest id
        best = min(candidates, key=lambda p: self.route_score(p, chain, amount_decimal))
        self._logger.debug(f"Route for {chain} amount={amount_decimal}: {best.id}")
        return best.id

    def route_score(self, provider: Provider, chain: str, amount: AmountType) -> float:
        """Optimization score of a provider for a chain and amount. Lower is better."""
        cost_score = float(provider.cost_per_request) / float(to_decimal(amount))
        reliability_score = 1.0 - provider.reliability_score

        stats = self._chain_stats.get(chain)
        success_rate = stats.success_rate if stats else DEFAULT_CHAIN_SUCCESS_RATE
        historical_score = 1.0 - success_rate

        return (
            cost_score * COST_WEIGHT
            + reliability_score * RELIABILITY_WEIGHT
            + historical_score * HISTORY_WEIGHT
        )

    def _candidates(self, chain: str) -> list[Provider]:
        max_cost = to_decimal(self._settings.max_cost_per_transaction)
        threshold = self._settings.reliability_threshold
        return [
            p
            for p in self._registry.list()
            if p.is_active
            and p.supports(chain)
            and p.cost_per_request <= max_cost
            and p.reliability_score >= threshold
        ]

    # ------------------------------------------------------------------
    # Usage tracking
    # ------------------------------------------------------------------

    def record_usage(
        self,
        chain: str,
        provider_id: str,
        cost: AmountType,
        success: bool,
        response_time: float,
    ) -> UsageRecord:
        """Append a usage record and fold it into the chain's running statistics."""
        now = self._clock()
        record = UsageRecord(
            timestamp=now,
            chain=chain,
            provider_id=provider_id,
            cost=to_decimal(cost),
            success=success,
            response_time=response_time,
        )
        self._usage.append(record)
        self._update_chain_stats(record)
        return record

    def _update_chain_stats(self, record: UsageRecord) -> None:
        cost = float(record.cost)
        outcome = 1.0 if record.success else 0.0

        stats = self._chain_stats.get(record.chain)
        if stats is None:
            self._chain_stats[record.chain] = ChainCostStats(
                average_cost=cost,
                volume=1,
                success_rate=outcome,
                last_updated=record.timestamp,
            )
            return

        stats.volume += 1
        stats.average_cost += (cost - stats.average_cost) / stats.volume
        stats.success_rate += (outcome - stats.success_rate) / stats.volume
        # Rounding in the streaming update can step a hair outside [0, 1]
        stats.success_rate = min(1.0, max(0.0, stats.success_rate))
        stats.last_updated = record.timestamp

    def usage_history(self) -> list[UsageRecord]:
        """Snapshot of stored usage records, oldest first."""
        return list(self._usage)

    def chain_stats(self, chain: str) -> ChainCostStats | None:
        stats = self._chain_stats.get(chain)
        return replace(stats) if stats else None

    def all_chain_stats(self) -> dict[str, ChainCostStats]:
        return {chain: replace(stats) for chain, stats in sorted(self._chain_stats.items())}

    def usage_metrics(self, window_seconds: float) -> UsageMetrics:
        """
        Aggregate usage records from the last ``window_seconds``.

        A window longer than the clock's lifetime covers everything; the
        window start never goes below zero.
        """
        now = self._clock()
        window_start = max(0.0, now - window_seconds)
        recent = [r for r in self._usage if window_start <= r.timestamp <= now]

        total_requests = len(recent)
        successful = sum(1 for r in recent if r.success)
        total_volume = sum((r.cost for r in recent), Decimal("0"))

        if recent:
            average_response_time = sum(r.response_time for r in recent) / total_requests
        else:
            average_response_time = 0.0

        if total_requests > 0 and total_volume > 0:
            cost_efficiency = successful / float(total_volume) * EFFICIENCY_SCALE
        else:
            cost_efficiency = 0.0

        return UsageMetrics(
            total_requests=total_requests,
            successful_payments=successful,
            failed_payments=total_requests - successful,
            total_volume=total_volume,
            average_response_time=average_response_time,
            cost_efficiency=cost_efficiency,
        )

    # ------------------------------------------------------------------
    # Rebalancing
    # ------------------------------------------------------------------

    def suggest_rebalancing(self) -> list[RebalancingSuggestion]:
        """
        Suggest moving traffic off preferred chains whose success rate is
        below the reliability threshold.

        potential_savings is a heuristic: the source chain's expected loss
        per attempt, ``(1 - success_rate) * average_cost``, scaled by the best
        success-per-cost ratio seen on any chain.
        """
        suggestions = []
        threshold = self._settings.reliability_threshold

        for chain in self._settings.preferred_chains:
            stats = self._chain_stats.get(chain)
            if stats is None or stats.success_rate >= threshold:
                continue

            target = self._find_alternative_chain(chain)
            if target is None:
                self._logger.warning(
                    f"Chain {chain} is below threshold ({stats.success_rate:.2f}) "
                    "but no alternative chain is known"
                )
                continue

            suggestions.append(
                RebalancingSuggestion(
                    from_chain=chain,
                    to_chain=target,
                    reason=LOW_SUCCESS_REASON,
                    potential_savings=self._potential_savings(stats),
                )
            )

        return suggestions

    def _find_alternative_chain(self, problematic_chain: str) -> str | None:
        tracked = [
            (chain, stats)
            for chain, stats in sorted(self._chain_stats.items())
            if chain != problematic_chain
        ]
        if tracked:
            # max() keeps the first of equal rates, i.e. the alphabetically first chain
            return max(tracked, key=lambda item: item[1].success_rate)[0]

        for chain in self._settings.preferred_chains:
            if chain != problematic_chain:
                return chain
        return None

    def _potential_savings(self, stats: ChainCostStats) -> float:
        current_inefficiency = (1.0 - stats.success_rate) * stats.average_cost

        best_efficiency = 0.0
        for data in self._chain_stats.values():
            if data.average_cost > 0:
                best_efficiency = max(best_efficiency, data.success_rate / data.average_cost)

        return max(0.0, current_inefficiency * best_efficiency)


__all__ = [
    "COST_WEIGHT",
    "DEFAULT_CHAIN_SUCCESS_RATE",
    "EFFICIENCY_SCALE",
    "HISTORY_WEIGHT",
    "LOW_SUCCESS_REASON",
    "RELIABILITY_WEIGHT",
    "USAGE_HISTORY_SIZE",
    "CostOptimizer",
]

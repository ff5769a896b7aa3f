"""
ProviderRegistry - Provider inventory and performance scoring.

Keeps every registered provider (providers are never removed, only
deactivated) together with a rolling window of observed response times.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable

from chainroute.core.exceptions import DuplicateIdError, NotFoundError
from chainroute.core.logging import get_logger
from chainroute.core.types import AmountType, Provider, ScoreSelection, to_decimal

# Minimum reliability a provider needs to be considered by select_best
MIN_RELIABILITY = 0.8

# Response times kept per provider
PERFORMANCE_HISTORY_SIZE = 100

# Performance term used before any response time has been recorded
DEFAULT_PERFORMANCE_SCORE = 0.5

COST_WEIGHT = 0.3
RELIABILITY_WEIGHT = 0.4
PERFORMANCE_WEIGHT = 0.3


class ProviderRegistry:
    """
    Registry of payment-service providers.

    The composite score combines cost, reliability and mean response time,
    each term growing as the provider gets better. The registry has always
    picked the *lowest* composite score, which favours the worst provider;
    that behaviour stays the default until the product decision is made.
    Pass ``selection=ScoreSelection.HIGHEST`` to pick the best-scoring one.
    """

    def __init__(
        self,
        selection: ScoreSelection = ScoreSelection.LOWEST,
        history_size: int = PERFORMANCE_HISTORY_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._providers: dict[str, Provider] = {}
        self._performance: dict[str, deque[float]] = {}
        self._selection = selection
        self._history_size = history_size
        self._clock = clock
        self._logger = get_logger("registry")

    @property
    def selection(self) -> ScoreSelection:
        return self._selection

    def register(self, provider: Provider) -> str:
        """
        Register a new provider.

        Args:
            provider: Provider to add

        Returns:
            The provider id

        Raises:
            DuplicateIdError: If a provider with the same id exists
        """
        if provider.id in self._providers:
            raise DuplicateIdError(
                f"Provider already registered: {provider.id}",
                entity_id=provider.id,
                kind="provider",
            )

        self._performance[provider.id] = deque(maxlen=self._history_size)
        self._providers[provider.id] = provider
        self._logger.info(
            f"Registered provider {provider.id} (chains: {', '.join(provider.supported_chains)})"
        )
        return provider.id

    def record_performance(self, provider_id: str, response_time: float) -> None:
        """Append a response time to the provider's rolling history."""
        provider = self._require(provider_id)
        self._performance[provider_id].append(response_time)
        provider.last_ping = self._clock()

    def performance_history(self, provider_id: str) -> list[float]:
        """Snapshot of the provider's response times, oldest first."""
        self._require(provider_id)
        return list(self._performance[provider_id])

    def deactivate(self, provider_id: str) -> None:
        """Mark a provider inactive. There is no way back."""
        provider = self._require(provider_id)
        if provider.is_active:
            provider.is_active = False
            self._logger.info(f"Deactivated provider {provider_id}")

    def get(self, provider_id: str) -> Provider | None:
        return self._providers.get(provider_id)

    def list(self) -> list[Provider]:
        return [self._providers[pid] for pid in sorted(self._providers)]

    def score(self, provider_id: str) -> float:
        """Composite desirability score of a registered provider."""
        return self._score(self._require(provider_id))

    def select_best(self, chain: str, max_cost: AmountType) -> Provider | None:
        """
        Pick a provider for a chain among those under a cost ceiling.

        Candidates are active, support the chain, cost at most ``max_cost``
        and have reliability of at least MIN_RELIABILITY. Candidates are
        compared in id order; on equal scores the smallest id wins.

        Returns:
            The selected provider, or None if there is no candidate
        """
        ceiling = to_decimal(max_cost)
        candidates = [
            p
            for p in self.list()
            if p.is_active
            and p.supports(chain)
            and p.cost_per_request <= ceiling
            and p.reliability_score >= MIN_RELIABILITY
        ]
        if not candidates:
            return None

        if self._selection == ScoreSelection.HIGHEST:
            # max() keeps the first maximal element, i.e. the smallest id
            return max(candidates, key=self._score)
        return min(candidates, key=self._score)

    def _score(self, provider: Provider) -> float:
        cost_score = 1.0 / (float(provider.cost_per_request) + 1.0)

        history = self._performance.get(provider.id)
        if history:
            mean_response_time = sum(history) / len(history)
            performance_score = 1.0 / (mean_response_time + 1.0)
        else:
            performance_score = DEFAULT_PERFORMANCE_SCORE

        return (
            cost_score * COST_WEIGHT
            + provider.reliability_score * RELIABILITY_WEIGHT
            + performance_score * PERFORMANCE_WEIGHT
        )

    def _require(self, provider_id: str) -> Provider:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise NotFoundError(
                f"Provider not found: {provider_id}", entity_id=provider_id, kind="provider"
            )
        return provider

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers


__all__ = [
    "COST_WEIGHT",
    "DEFAULT_PERFORMANCE_SCORE",
    "MIN_RELIABILITY",
    "PERFORMANCE_HISTORY_SIZE",
    "PERFORMANCE_WEIGHT",
    "RELIABILITY_WEIGHT",
    "ProviderRegistry",
]

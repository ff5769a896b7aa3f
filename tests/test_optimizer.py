"""Tests for CostOptimizer."""

from decimal import Decimal

import pytest

from chainroute.core.exceptions import ValidationError
from chainroute.core.types import OptimizationSettings
from chainroute.optimizer.optimizer import (
    DEFAULT_CHAIN_SUCCESS_RATE,
    LOW_SUCCESS_REASON,
    USAGE_HISTORY_SIZE,
    CostOptimizer,
)
from chainroute.registry.registry import ProviderRegistry

from conftest import make_provider


class TestSelectRoute:
    def test_documented_example(self, registry: ProviderRegistry, optimizer: CostOptimizer) -> None:
        """A(cost=10, rel=0.99) vs B(cost=5, rel=0.81) on an unseen chain, amount 100."""
        registry.register(make_provider("A", cost="10", reliability=0.99))
        registry.register(make_provider("B", cost="5", reliability=0.81))

        score_a = 0.4 * (10 / 100) + 0.3 * (1 - 0.99) + 0.3 * (1 - DEFAULT_CHAIN_SUCCESS_RATE)
        score_b = 0.4 * (5 / 100) + 0.3 * (1 - 0.81) + 0.3 * (1 - DEFAULT_CHAIN_SUCCESS_RATE)
        assert optimizer.route_score(registry.get("A"), "Polygon", 100) == pytest.approx(score_a)
        assert optimizer.route_score(registry.get("B"), "Polygon", 100) == pytest.approx(score_b)

        expected = "A" if score_a < score_b else "B"
        assert optimizer.select_route("Polygon", Decimal("100")) == expected == "A"

    def test_no_route(self, registry: ProviderRegistry, optimizer: CostOptimizer) -> None:
        assert optimizer.select_route("Polygon", 100) is None
        registry.register(make_provider("expensive", cost="21"))
        registry.register(make_provider("flaky", cost="1", reliability=0.5))
        registry.register(make_provider("elsewhere", cost="1", chains=("REI",)))
        assert optimizer.select_route("Polygon", 100) is None

    def test_deactivated_provider_skipped(self, registry: ProviderRegistry, optimizer: CostOptimizer) -> None:
        registry.register(make_provider("A", cost="1"))
        registry.register(make_provider("B", cost="10"))
        registry.deactivate("A")
        assert optimizer.select_route("Polygon", 100) == "B"

    def test_ties_break_on_smallest_id(self, registry: ProviderRegistry, optimizer: CostOptimizer) -> None:
        for pid in ("delta", "alpha", "charlie"):
            registry.register(make_provider(pid))
        assert optimizer.select_route("Polygon", 100) == "alpha"

    def test_chain_history_changes_scores(self, registry: ProviderRegistry, optimizer: CostOptimizer) -> None:
        provider = make_provider("A")
        registry.register(provider)
        unseen = optimizer.route_score(provider, "Polygon", 100)
        optimizer.record_usage("Polygon", "A", 10, True, 0.1)
        assert optimizer.route_score(provider, "Polygon", 100) == pytest.approx(unseen - 0.3 * 0.5)

    @pytest.mark.parametrize("amount", [0, -5, "0"])
    def test_non_positive_amount(self, optimizer: CostOptimizer, amount) -> None:
        with pytest.raises(ValidationError):
            optimizer.select_route("Polygon", amount)


class TestUsageTracking:
    def test_ring_buffer_evicts_oldest(self, optimizer: CostOptimizer) -> None:
        for i in range(USAGE_HISTORY_SIZE + 1):
            optimizer.record_usage("Polygon", f"p{i}", 1, True, 0.1)

        history = optimizer.usage_history()
        assert len(history) == USAGE_HISTORY_SIZE
        assert history[0].provider_id == "p1"
        assert history[-1].provider_id == f"p{USAGE_HISTORY_SIZE}"
        assert [r.provider_id for r in history] == [f"p{i}" for i in range(1, USAGE_HISTORY_SIZE + 1)]

    def test_streaming_mean_matches_arithmetic_mean(self, optimizer: CostOptimizer) -> None:
        costs = [3, 17, 4, 250, 1, 99, 42, 8, 15, 16]
        outcomes = [True, False, True, True, False, True, True, True, False, True]
        for cost, ok in zip(costs, outcomes):
            optimizer.record_usage("REI", "A", cost, ok, 0.5)

        stats = optimizer.chain_stats("REI")
        assert stats.volume == len(costs)
        assert stats.average_cost == pytest.approx(sum(costs) / len(costs))
        assert stats.success_rate == pytest.approx(sum(outcomes) / len(outcomes))
        assert 0.0 <= stats.success_rate <= 1.0

    def test_stats_survive_history_eviction(self, clock, registry: ProviderRegistry) -> None:
        optimizer = CostOptimizer(registry, history_size=3, clock=clock)
        for cost in (10, 20, 30, 40, 50):
            optimizer.record_usage("REI", "A", cost, True, 0.1)
        assert len(optimizer.usage_history()) == 3
        assert optimizer.chain_stats("REI").average_cost == pytest.approx(30.0)
        assert optimizer.chain_stats("REI").volume == 5

    def test_chain_stats_are_copies(self, optimizer: CostOptimizer, clock) -> None:
        optimizer.record_usage("REI", "A", 10, True, 0.1)
        snapshot = optimizer.chain_stats("REI")
        snapshot.volume = 99
        assert optimizer.chain_stats("REI").volume == 1
        assert optimizer.chain_stats("REI").last_updated == clock.now
        assert optimizer.chain_stats("unknown") is None


class TestUsageMetrics:
    def test_empty_window(self, optimizer: CostOptimizer) -> None:
        metrics = optimizer.usage_metrics(3600)
        assert metrics.total_requests == 0
        assert metrics.cost_efficiency == 0
        assert metrics.average_response_time == 0

    def test_window_excludes_old_records(self, optimizer: CostOptimizer, clock) -> None:
        optimizer.record_usage("REI", "A", 100, False, 2.0)
        clock.advance(500)
        optimizer.record_usage("REI", "A", 40, True, 0.5)
        optimizer.record_usage("Polygon", "B", 60, True, 1.5)

        metrics = optimizer.usage_metrics(100)
        assert metrics.total_requests == 2
        assert metrics.successful_payments == 2
        assert metrics.failed_payments == 0
        assert metrics.total_volume == Decimal("100")
        assert metrics.average_response_time == pytest.approx(1.0)
        assert metrics.cost_efficiency == pytest.approx(2 / 100 * 1_000_000)

    def test_window_longer_than_lifetime_saturates(self, optimizer: CostOptimizer, clock) -> None:
        optimizer.record_usage("REI", "A", 100, False, 2.0)
        clock.advance(10)
        optimizer.record_usage("REI", "A", 50, True, 1.0)

        metrics = optimizer.usage_metrics(clock.now * 1000)
        assert metrics.total_requests == 2
        assert metrics.failed_payments == 1

    def test_zero_cost_volume_has_zero_efficiency(self, optimizer: CostOptimizer) -> None:
        optimizer.record_usage("REI", "A", 0, True, 1.0)
        metrics = optimizer.usage_metrics(60)
        assert metrics.total_requests == 1
        assert metrics.cost_efficiency == 0.0


class TestRebalancing:
    def test_underperforming_preferred_chain(self, optimizer: CostOptimizer) -> None:
        optimizer.record_usage("REI", "A", 10, True, 0.1)
        optimizer.record_usage("REI", "A", 10, False, 0.1)
        optimizer.record_usage("Polygon", "B", 4, True, 0.1)
        optimizer.record_usage("Polygon", "B", 4, True, 0.1)

        suggestions = optimizer.suggest_rebalancing()
        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion.from_chain == "REI"
        assert suggestion.to_chain == "Polygon"
        assert suggestion.reason == LOW_SUCCESS_REASON
        # (1 - 0.5) * 10 * max(0.5 / 10, 1.0 / 4)
        assert suggestion.potential_savings == pytest.approx(1.25)
        assert suggestion.potential_savings >= 0

    def test_healthy_chains_produce_nothing(self, optimizer: CostOptimizer) -> None:
        optimizer.record_usage("REI", "A", 10, True, 0.1)
        optimizer.record_usage("Polygon", "B", 4, True, 0.1)
        assert optimizer.suggest_rebalancing() == []

    def test_untracked_preferred_chain_ignored(self, optimizer: CostOptimizer) -> None:
        optimizer.record_usage("Ethereum", "A", 10, False, 0.1)
        assert optimizer.suggest_rebalancing() == []

    def test_falls_back_to_other_preferred_chain(self, optimizer: CostOptimizer) -> None:
        optimizer.record_usage("REI", "A", 10, False, 0.1)
        [suggestion] = optimizer.suggest_rebalancing()
        assert suggestion.to_chain == "Polygon"
        assert suggestion.potential_savings == 0.0

    def test_no_alternative_skips_chain(self, registry: ProviderRegistry, clock) -> None:
        optimizer = CostOptimizer(
            registry,
            settings=OptimizationSettings(preferred_chains=["REI"], reliability_threshold=0.9),
            clock=clock,
        )
        optimizer.record_usage("REI", "A", 10, False, 0.1)
        assert optimizer.suggest_rebalancing() == []

    def test_target_is_best_other_chain(self, optimizer: CostOptimizer) -> None:
        optimizer.record_usage("REI", "A", 10, False, 0.1)
        optimizer.record_usage("Polygon", "B", 5, False, 0.1)
        optimizer.record_usage("Base", "C", 5, True, 0.1)
        suggestions = {s.from_chain: s.to_chain for s in optimizer.suggest_rebalancing()}
        assert suggestions == {"REI": "Base", "Polygon": "Base"}


class TestSettings:
    def test_update_replaces_settings(self, optimizer: CostOptimizer) -> None:
        new = OptimizationSettings(max_cost_per_transaction=Decimal("5"), reliability_threshold=0.5)
        optimizer.update_settings(new)
        assert optimizer.settings.max_cost_per_transaction == Decimal("5")
        assert optimizer.settings.reliability_threshold == 0.5

    def test_out_of_range_values_accepted(self, optimizer: CostOptimizer) -> None:
        bad = OptimizationSettings(max_cost_per_transaction=Decimal("-1"), reliability_threshold=1.5)
        assert len(bad.validation_errors()) == 2
        optimizer.update_settings(bad)
        assert optimizer.settings.reliability_threshold == 1.5

    def test_settings_affect_route_selection(self, registry: ProviderRegistry, optimizer: CostOptimizer) -> None:
        registry.register(make_provider("A", cost="10", reliability=0.9))
        assert optimizer.select_route("Polygon", 100) == "A"
        optimizer.update_settings(OptimizationSettings(max_cost_per_transaction=Decimal("20"), reliability_threshold=0.95))
        assert optimizer.select_route("Polygon", 100) is None

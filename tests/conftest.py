import asyncio
from decimal import Decimal

import pytest

from chainroute.client import ChainRoute
from chainroute.core.config import Config
from chainroute.core.types import OptimizationSettings, PaymentRequest, PaymentStatus, Provider
from chainroute.execution.base import ExecutionBackend
from chainroute.execution.fixed import FixedOutcomeBackend
from chainroute.optimizer.optimizer import CostOptimizer
from chainroute.registry.registry import ProviderRegistry


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BlockingBackend(ExecutionBackend):
    """Backend whose attempts wait until release() is called."""

    def __init__(self, success: bool = True) -> None:
        self.success = success
        self.started = asyncio.Event()
        self._release = asyncio.Event()

    @property
    def name(self) -> str:
        return "blocking"

    def release(self) -> None:
        self._release.set()

    async def execute(self, payment: PaymentRequest) -> bool:
        self.started.set()
        await self._release.wait()
        return self.success


class CrashingBackend(ExecutionBackend):
    """Backend with a bug: every attempt raises RuntimeError."""

    @property
    def name(self) -> str:
        return "crashing"

    async def execute(self, payment: PaymentRequest) -> bool:
        raise RuntimeError("backend bug")


def make_provider(
    provider_id: str,
    cost: str = "10",
    reliability: float = 0.99,
    chains: tuple[str, ...] = ("Polygon",),
    active: bool = True,
) -> Provider:
    return Provider(
        id=provider_id,
        name=f"Provider {provider_id}",
        api_endpoint=f"https://{provider_id}.example.com",
        supported_chains=list(chains),
        cost_per_request=Decimal(cost),
        reliability_score=reliability,
        is_active=active,
    )


def make_payment(
    payment_id: str = "pay-1",
    provider_id: str = "alpha",
    chain: str = "Polygon",
    amount: str = "100",
) -> PaymentRequest:
    return PaymentRequest(
        id=payment_id,
        provider_id=provider_id,
        chain=chain,
        amount=Decimal(amount),
        recipient="0x742d35Cc6634C0532925a3b844Bc9e7595f5e4a0",
        metadata="invoice 42",
        status=PaymentStatus.COMPLETED,  # reset to PENDING on submit
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> ProviderRegistry:
    return ProviderRegistry(clock=clock)


@pytest.fixture
def settings() -> OptimizationSettings:
    return OptimizationSettings(
        max_cost_per_transaction=Decimal("20"),
        preferred_chains=["REI", "Polygon"],
        reliability_threshold=0.8,
    )


@pytest.fixture
def optimizer(registry: ProviderRegistry, settings: OptimizationSettings, clock: FakeClock) -> CostOptimizer:
    return CostOptimizer(registry, settings=settings, clock=clock)


@pytest.fixture
def config() -> Config:
    return Config(log_level="WARNING")


@pytest.fixture
def success_backend() -> FixedOutcomeBackend:
    return FixedOutcomeBackend(success=True)


@pytest.fixture
def client(config: Config, success_backend: FixedOutcomeBackend, settings: OptimizationSettings, clock: FakeClock) -> ChainRoute:
    return ChainRoute(config, backend=success_backend, settings=settings, clock=clock)

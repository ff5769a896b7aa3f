"""
chainroute - Cost-aware payment routing across blockchain providers

Pick a provider per payment, execute with bounded retry, and learn from
every attempt.

Usage:
    >>> from chainroute import ChainRoute, Config, PaymentRequest, Provider
    >>> from decimal import Decimal
    >>>
    >>> client = ChainRoute(Config())
    >>> client.register_provider(
    ...     Provider(id="p1", name="Relay", api_endpoint="https://relay.example",
    ...              supported_chains=["Polygon"], cost_per_request=Decimal("5"),
    ...              reliability_score=0.99)
    ... )
    >>> provider_id = client.optimize_route("Polygon", Decimal("100"))
    >>> client.submit_payment(
    ...     PaymentRequest(id="pay-1", provider_id=provider_id, chain="Polygon",
    ...                    amount=Decimal("100"), recipient="0x...")
    ... )
    >>> outcome = await client.process_payment("pay-1")
"""

from chainroute.auth import CallerAllowList
from chainroute.client import ChainRoute
from chainroute.core.config import Config
from chainroute.core.exceptions import (
    ChainRouteError,
    ConfigurationError,
    DuplicateIdError,
    ExecutionError,
    InvalidStateError,
    NotFoundError,
    RetryExhaustedError,
    UnauthorizedError,
    ValidationError,
)
from chainroute.core.logging import configure_logging, get_logger
from chainroute.core.types import (
    ChainCostStats,
    OptimizationSettings,
    PaymentRequest,
    PaymentStatus,
    ProcessOutcome,
    Provider,
    RebalancingSuggestion,
    ScoreSelection,
    UsageMetrics,
    UsageRecord,
)
from chainroute.execution import (
    ExecutionBackend,
    FixedOutcomeBackend,
    HttpExecutionBackend,
    ScriptedBackend,
    SimulatedBackend,
    get_execution_backend,
)
from chainroute.optimizer import CostOptimizer
from chainroute.payment.processor import PaymentProcessor
from chainroute.registry import ProviderRegistry
from chainroute.scheduler import PendingPaymentScheduler

__version__ = "0.1.0"
__all__ = [
    # Main Client
    "ChainRoute",
    "PendingPaymentScheduler",
    # Components
    "ProviderRegistry",
    "CostOptimizer",
    "PaymentProcessor",
    "CallerAllowList",
    # Execution
    "ExecutionBackend",
    "FixedOutcomeBackend",
    "ScriptedBackend",
    "SimulatedBackend",
    "HttpExecutionBackend",
    "get_execution_backend",
    # Types
    "Provider",
    "PaymentRequest",
    "PaymentStatus",
    "ProcessOutcome",
    "ScoreSelection",
    "UsageRecord",
    "ChainCostStats",
    "UsageMetrics",
    "RebalancingSuggestion",
    "OptimizationSettings",
    # Config & logging
    "Config",
    "configure_logging",
    "get_logger",
    # Exceptions
    "ChainRouteError",
    "ConfigurationError",
    "ValidationError",
    "DuplicateIdError",
    "NotFoundError",
    "InvalidStateError",
    "UnauthorizedError",
    "RetryExhaustedError",
    "ExecutionError",
]

"""
Type definitions for chainroute.

This module contains the enums and data classes shared by the registry,
the optimizer and the payment processor.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import (
    Any,
    TypeAlias,
)

# Type alias for flexible amount input
AmountType: TypeAlias = Decimal | int | float | str


def to_decimal(value: AmountType) -> Decimal:
    """Convert flexible amount input to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PaymentStatus(str, Enum):
    """Payment lifecycle status."""

    PENDING = "pending"  # Waiting for an attempt (initial or retry)
    PROCESSING = "processing"  # Attempt in flight
    COMPLETED = "completed"  # Execution succeeded
    FAILED = "failed"  # Retries exhausted
    CANCELLED = "cancelled"  # Cancelled before processing

    def is_terminal(self) -> bool:
        return self in (PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED)


class ProcessOutcome(str, Enum):
    """Non-terminal-failure result of a single process() call."""

    COMPLETED = "completed"
    RETRY_SCHEDULED = "retry_scheduled"  # Attempt failed, payment back to PENDING


class ScoreSelection(str, Enum):
    """Which end of the registry's composite score wins."""

    LOWEST = "lowest"
    HIGHEST = "highest"


@dataclass
class Provider:
    """Payment-service provider that can execute payments on one or more chains."""

    id: str
    name: str
    api_endpoint: str
    supported_chains: list[str] = field(default_factory=list)
    cost_per_request: Decimal = Decimal("0")
    reliability_score: float = 1.0
    last_ping: float = 0.0
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Provider ID is required")
        self.cost_per_request = to_decimal(self.cost_per_request)
        if self.cost_per_request < 0:
            raise ValueError("Cost per request cannot be negative")
        if not 0.0 <= self.reliability_score <= 1.0:
            raise ValueError("Reliability score must be within [0, 1]")

    def supports(self, chain: str) -> bool:
        return chain in self.supported_chains

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "api_endpoint": self.api_endpoint,
            "supported_chains": list(self.supported_chains),
            "cost_per_request": str(self.cost_per_request),
            "reliability_score": self.reliability_score,
            "last_ping": self.last_ping,
            "is_active": self.is_active,
        }


@dataclass
class PaymentRequest:
    """Payment to be executed through a provider on a chain."""

    id: str
    provider_id: str
    chain: str
    amount: Decimal
    recipient: str
    metadata: str = ""
    timestamp: float = 0.0
    status: PaymentStatus = PaymentStatus.PENDING

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Payment ID is required")
        if not self.chain:
            raise ValueError("Chain is required")
        if not self.recipient:
            raise ValueError("Recipient is required")
        self.amount = to_decimal(self.amount)
        if self.amount <= 0:
            raise ValueError("Amount must be positive")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "chain": self.chain,
            "amount": str(self.amount),
            "recipient": self.recipient,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class UsageRecord:
    """One reported execution attempt."""

    timestamp: float
    chain: str
    provider_id: str
    cost: Decimal
    success: bool
    response_time: float


@dataclass
class ChainCostStats:
    """Running statistics for a chain, folded in one usage event at a time."""

    average_cost: float
    volume: int
    success_rate: float
    last_updated: float


@dataclass
class UsageMetrics:
    """Aggregate view over the usage records inside a time window."""

    total_requests: int = 0
    successful_payments: int = 0
    failed_payments: int = 0
    total_volume: Decimal = Decimal("0")
    average_response_time: float = 0.0
    cost_efficiency: float = 0.0


@dataclass
class RebalancingSuggestion:
    """Advice to move preferred traffic away from an underperforming chain."""

    from_chain: str
    to_chain: str
    reason: str
    potential_savings: float


@dataclass
class OptimizationSettings:
    """Tunable parameters of the cost optimizer."""

    max_cost_per_transaction: Decimal = Decimal("1000000")
    preferred_chains: list[str] = field(default_factory=lambda: ["REI", "Polygon"])
    reliability_threshold: float = 0.95
    auto_optimization_enabled: bool = True
    rebalance_frequency: int = 3600  # seconds

    def validation_errors(self) -> list[str]:
        """Describe out-of-range fields. Empty when every field is in range."""
        errors = []
        if to_decimal(self.max_cost_per_transaction) < 0:
            errors.append(f"max_cost_per_transaction is negative: {self.max_cost_per_transaction}")
        if not 0.0 <= self.reliability_threshold <= 1.0:
            errors.append(f"reliability_threshold outside [0, 1]: {self.reliability_threshold}")
        if self.rebalance_frequency <= 0:
            errors.append(f"rebalance_frequency must be positive: {self.rebalance_frequency}")
        return errors

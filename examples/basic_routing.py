"""
Example: Basic Routing Flow

Registers providers, routes a few payments, processes them with the
simulated backend and prints what the optimizer learned.
"""

import asyncio
from decimal import Decimal

from chainroute import (
    ChainRoute,
    Config,
    OptimizationSettings,
    PaymentRequest,
    PendingPaymentScheduler,
    Provider,
)


async def main():
    print("=== chainroute Basic Example ===\n")

    settings = OptimizationSettings(
        max_cost_per_transaction=Decimal("20"),
        preferred_chains=["REI", "Polygon"],
        reliability_threshold=0.8,
    )
    async with ChainRoute(Config(execution_backend="simulated"), settings=settings) as client:
        client.register_provider(
            Provider(
                id="relay-a",
                name="Relay A",
                api_endpoint="https://relay-a.example.com",
                supported_chains=["REI", "Polygon"],
                cost_per_request=Decimal("10"),
                reliability_score=0.99,
            )
        )
        client.register_provider(
            Provider(
                id="relay-b",
                name="Relay B",
                api_endpoint="https://relay-b.example.com",
                supported_chains=["Polygon"],
                cost_per_request=Decimal("5"),
                reliability_score=0.81,
            )
        )
        print(f"Registered {len(client.list_providers())} providers")

        for i in range(10):
            chain = "REI" if i % 2 else "Polygon"
            amount = Decimal("100")
            provider_id = client.optimize_route(chain, amount)
            if provider_id is None:
                print(f"No route for {chain}")
                continue
            client.submit_payment(
                PaymentRequest(
                    id=f"pay-{i}",
                    provider_id=provider_id,
                    chain=chain,
                    amount=amount,
                    recipient="0x742d35Cc6634C0532925a3b844Bc9e7595f5e4a0",
                )
            )

        scheduler = PendingPaymentScheduler(client)
        for sweep in range(4):
            results = await scheduler.run_once()
            print(f"Sweep {sweep + 1}: {len(results)} payment(s) attempted")

        metrics = client.get_usage_metrics(3600)
        print(f"\nRequests: {metrics.total_requests}, successes: {metrics.successful_payments}")
        print(f"Cost efficiency: {metrics.cost_efficiency:.1f} successes per million")

        for suggestion in client.get_rebalancing_suggestions():
            print(f"Move traffic {suggestion.from_chain} -> {suggestion.to_chain}: {suggestion.reason}")

        print(f"\n{client.health_check()}")

    print("\n=== Example Complete ===")


if __name__ == "__main__":
    asyncio.run(main())

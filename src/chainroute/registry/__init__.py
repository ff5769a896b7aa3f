from chainroute.registry.registry import MIN_RELIABILITY, ProviderRegistry

__all__ = ["MIN_RELIABILITY", "ProviderRegistry"]

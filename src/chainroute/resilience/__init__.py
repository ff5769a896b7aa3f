"""
Resilience Layer for chainroute.

Provides the retry policy used for calls to external execution services.
"""

from .retry import execute_with_retry, is_transient_error

__all__ = [
    "execute_with_retry",
    "is_transient_error",
]

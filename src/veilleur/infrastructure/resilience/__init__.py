"""
Resilience patterns for transports.
"""

from veilleur.infrastructure.resilience.retry import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
)

__all__ = [
    "Retry",
    "RetryConfig",
    "RetryError",
    "BackoffStrategy",
]

"""
Subscription infrastructure.
"""

from veilleur.infrastructure.subscriptions.channel import (
    SubscriptionChannel,
    SubscriptionState,
)
from veilleur.infrastructure.subscriptions.dispatcher import (
    SubscriptionDispatcher,
    SubscriptionRoute,
)

__all__ = [
    "SubscriptionChannel",
    "SubscriptionState",
    "SubscriptionDispatcher",
    "SubscriptionRoute",
]

"""
Client entry points.
"""

from veilleur.client.rpc_client import LedgerRpcClient
from veilleur.client.subscription_client import LedgerSubscriptionClient

__all__ = ["LedgerRpcClient", "LedgerSubscriptionClient"]

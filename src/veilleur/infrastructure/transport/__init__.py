"""
Transport infrastructure.
"""

from veilleur.infrastructure.transport.base import (
    RpcTransport,
    SubscriptionTransport,
    TransportContext,
)
from veilleur.infrastructure.transport.http_transport import HttpRpcTransport
from veilleur.infrastructure.transport.websocket_transport import WebSocketTransport

__all__ = [
    "RpcTransport",
    "SubscriptionTransport",
    "TransportContext",
    "HttpRpcTransport",
    "WebSocketTransport",
]

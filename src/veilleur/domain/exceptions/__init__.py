"""
Domain exceptions.
"""

from veilleur.domain.exceptions.rpc_exceptions import (
    ProtocolError,
    SubscriptionError,
    TransportError,
    UnsupportedEncodingError,
    ValidationError,
    VeilleurException,
)

__all__ = [
    "VeilleurException",
    "ValidationError",
    "ProtocolError",
    "TransportError",
    "UnsupportedEncodingError",
    "SubscriptionError",
]

"""
Veilleur - typed Solana account queries and subscriptions.
"""

from veilleur.application import CommitmentGate, EncodingResolver
from veilleur.client import LedgerRpcClient, LedgerSubscriptionClient
from veilleur.config import VeilleurConfig, get_settings
from veilleur.domain.entities import (
    AccountInfo,
    KeyedAccount,
    ResponseEnvelope,
    TokenAmount,
)
from veilleur.domain.exceptions import (
    ProtocolError,
    SubscriptionError,
    TransportError,
    UnsupportedEncodingError,
    ValidationError,
    VeilleurException,
)
from veilleur.domain.services.error_classifier import ErrorKind
from veilleur.domain.value_objects import (
    AccountEncoding,
    Address,
    CommitmentLevel,
    DataSizeFilter,
    MemcmpBase58Filter,
    MemcmpBase64Filter,
)
from veilleur.infrastructure.subscriptions import SubscriptionChannel, SubscriptionState

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "LedgerRpcClient",
    "LedgerSubscriptionClient",
    "SubscriptionChannel",
    "SubscriptionState",
    "CommitmentGate",
    "EncodingResolver",
    "VeilleurConfig",
    "get_settings",
    "AccountInfo",
    "KeyedAccount",
    "ResponseEnvelope",
    "TokenAmount",
    "Address",
    "AccountEncoding",
    "CommitmentLevel",
    "DataSizeFilter",
    "MemcmpBase58Filter",
    "MemcmpBase64Filter",
    "ErrorKind",
    "VeilleurException",
    "ValidationError",
    "ProtocolError",
    "TransportError",
    "UnsupportedEncodingError",
    "SubscriptionError",
]

"""
Domain entities.
"""

from veilleur.domain.entities.account import (
    AccountInfo,
    Base58Bytes,
    Base64Bytes,
    Base64ZstdBytes,
    EncodedData,
    JsonParsedData,
    KeyedAccount,
    TokenAmount,
    parse_u64,
)
from veilleur.domain.entities.envelope import (
    ResponseEnvelope,
    ResponseEnvelopeBuilder,
    RpcContext,
)

__all__ = [
    "AccountInfo",
    "KeyedAccount",
    "TokenAmount",
    "EncodedData",
    "Base58Bytes",
    "Base64Bytes",
    "Base64ZstdBytes",
    "JsonParsedData",
    "parse_u64",
    "ResponseEnvelope",
    "ResponseEnvelopeBuilder",
    "RpcContext",
]

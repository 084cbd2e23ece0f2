"""
Application services: encoding and commitment resolution.
"""

from veilleur.application.commitment_gate import (
    CommitmentGate,
    SnapshotToken,
    parse_commitment,
)
from veilleur.application.encoding_resolver import EncodingResolver, parse_encoding

__all__ = [
    "CommitmentGate",
    "SnapshotToken",
    "parse_commitment",
    "EncodingResolver",
    "parse_encoding",
]

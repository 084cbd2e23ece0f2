"""
Account data wire encodings.
"""

from enum import Enum


class AccountEncoding(str, Enum):
    """Wire encoding requested for account data."""

    BASE58 = "base58"
    BASE64 = "base64"
    BASE64_ZSTD = "base64+zstd"
    JSON_PARSED = "jsonParsed"

    def is_binary(self) -> bool:
        """Check if the encoding carries raw account bytes."""
        return self is not AccountEncoding.JSON_PARSED

    def __str__(self) -> str:
        """String representation."""
        return self.value

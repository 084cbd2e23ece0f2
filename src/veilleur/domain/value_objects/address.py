"""
Address value object - immutable 32-byte account identifier.
"""

from dataclasses import dataclass
from typing import ClassVar, Union

import base58

from veilleur.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Address:
    """
    Value object representing a validated account address.

    Addresses are 32-byte public keys whose textual form is base58.
    Instances are only built through validated decode, so holding an
    Address means the bytes are well formed.

    Examples:
        >>> addr = Address.from_string("11111111111111111111111111111111")
        >>> addr.raw == bytes(32)
        True
        >>> str(addr)
        '11111111111111111111111111111111'
    """

    raw: bytes

    LENGTH: ClassVar[int] = 32
    MIN_TEXT_LENGTH: ClassVar[int] = 32
    MAX_TEXT_LENGTH: ClassVar[int] = 44

    def __post_init__(self):
        """Validate address bytes on creation."""
        if not isinstance(self.raw, bytes):
            raise ValidationError(
                f"Address bytes must be bytes, got {type(self.raw).__name__}"
            )
        if len(self.raw) != self.LENGTH:
            raise ValidationError(
                f"Address must be exactly {self.LENGTH} bytes, got {len(self.raw)}",
                details={"length": len(self.raw)},
            )

    @classmethod
    def from_string(cls, text: str) -> "Address":
        """
        Decode a base58 address.

        Args:
            text: Base58 encoded address

        Returns:
            Address instance

        Raises:
            ValidationError: If text is not a valid 32-byte base58 address
        """
        if not isinstance(text, str) or not text:
            raise ValidationError(f"Address must be a non-empty string: {text!r}")

        # Cheap length check before decoding
        if not cls.MIN_TEXT_LENGTH <= len(text) <= cls.MAX_TEXT_LENGTH:
            raise ValidationError(
                f"Address text length out of range: {text!r}",
                details={"length": len(text)},
            )

        try:
            decoded = base58.b58decode(text)
        except ValueError as e:
            raise ValidationError(f"Invalid base58 address {text!r}: {e}") from e

        return cls(decoded)

    @classmethod
    def from_bytes(cls, raw: Union[bytes, bytearray]) -> "Address":
        """Build from raw bytes (copied)."""
        return cls(bytes(raw))

    @classmethod
    def coerce(cls, value: Union["Address", str]) -> "Address":
        """
        Accept an Address or its base58 text.

        Args:
            value: Address instance or base58 string

        Returns:
            Address instance

        Raises:
            ValidationError: If value is neither
        """
        if isinstance(value, Address):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        raise ValidationError(
            f"Expected Address or base58 string, got {type(value).__name__}"
        )

    def to_base58(self) -> str:
        """Encode as base58 text."""
        return base58.b58encode(self.raw).decode("ascii")

    def __str__(self) -> str:
        """String representation."""
        return self.to_base58()

    def __repr__(self) -> str:
        """Detailed representation."""
        return f"Address({self.to_base58()!r})"


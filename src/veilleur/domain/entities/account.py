"""
Account snapshot entities.

All entities are frozen: they describe what the node reported at one
slot and are never mutated after construction.
"""

import base64
import binascii
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Union

import base58
import zstandard

from veilleur.domain.exceptions import TransportError
from veilleur.domain.value_objects.address import Address
from veilleur.domain.value_objects.encoding import AccountEncoding

U64_MAX = 2**64 - 1


def parse_u64(value: Any, name: str) -> int:
    """
    Read an unsigned 64-bit integer from wire data without float rounding.

    Accepts a JSON integer or an exact decimal string. Floats are refused
    because they may already have lost precision beyond 2**53.

    Args:
        value: Wire value
        name: Field name for error messages

    Returns:
        Exact integer value

    Raises:
        TransportError: If the value is not an exact u64
    """
    if isinstance(value, bool):
        raise TransportError(f"Field {name} must be an integer, got bool")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        result = int(value)
    else:
        raise TransportError(
            f"Field {name} must be an exact integer, got {type(value).__name__}",
            details={"field": name},
        )
    if not 0 <= result <= U64_MAX:
        raise TransportError(f"Field {name} out of u64 range: {result}")
    return result


# ================================================================
# Encoded data variants
# ================================================================


def _b64decode(text: str, encoding: AccountEncoding) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TransportError(
            f"Malformed {encoding} account data: {e}",
            details={"encoding": encoding.value},
        ) from e


@dataclass(frozen=True)
class Base58Bytes:
    """Account bytes as base58 text."""

    value: str

    encoding: ClassVar[AccountEncoding] = AccountEncoding.BASE58

    def to_bytes(self) -> bytes:
        """Decode to raw bytes."""
        try:
            return base58.b58decode(self.value)
        except ValueError as e:
            raise TransportError(
                f"Malformed {self.encoding} account data: {e}",
                details={"encoding": self.encoding.value},
            ) from e

    def to_wire(self) -> list:
        return [self.value, self.encoding.value]


@dataclass(frozen=True)
class Base64Bytes:
    """Account bytes as base64 text."""

    value: str

    encoding: ClassVar[AccountEncoding] = AccountEncoding.BASE64

    def to_bytes(self) -> bytes:
        """Decode to raw bytes."""
        return _b64decode(self.value, self.encoding)

    def to_wire(self) -> list:
        return [self.value, self.encoding.value]


@dataclass(frozen=True)
class Base64ZstdBytes:
    """Account bytes zstd-compressed, then base64 encoded."""

    value: str

    encoding: ClassVar[AccountEncoding] = AccountEncoding.BASE64_ZSTD

    def to_bytes(self) -> bytes:
        """Decode and decompress to raw bytes."""
        compressed = _b64decode(self.value, self.encoding)
        if not compressed:
            return b""
        # Frames may omit the content size, so stream-decompress
        try:
            return zstandard.ZstdDecompressor().decompressobj().decompress(compressed)
        except zstandard.ZstdError as e:
            raise TransportError(
                f"Malformed {self.encoding} account data: {e}",
                details={"encoding": self.encoding.value},
            ) from e

    def to_wire(self) -> list:
        return [self.value, self.encoding.value]


@dataclass(frozen=True)
class JsonParsedData:
    """Account data parsed by a program-specific decoder."""

    program: str
    parsed: Dict[str, Any]
    space: int

    encoding: ClassVar[AccountEncoding] = AccountEncoding.JSON_PARSED

    def to_wire(self) -> Dict[str, Any]:
        return {"program": self.program, "parsed": self.parsed, "space": self.space}


EncodedData = Union[Base58Bytes, Base64Bytes, Base64ZstdBytes, JsonParsedData]


# ================================================================
# Accounts
# ================================================================


@dataclass(frozen=True)
class AccountInfo:
    """
    Account state observed at one slot.

    Attributes:
        owner: Program that owns the account
        lamports: Native balance (u64, exact)
        data: Account data in the requested encoding
        executable: Whether the account holds a program
        rent_epoch: Epoch at which rent is next due (u64, exact)
        space: Data length in bytes, when the node reports it
    """

    owner: Address
    lamports: int
    data: EncodedData
    executable: bool
    rent_epoch: int
    space: Optional[int] = None

    @property
    def encoding(self) -> AccountEncoding:
        """Encoding tag of the data variant."""
        return self.data.encoding

    def raw_data(self) -> bytes:
        """
        Raw account bytes.

        Raises:
            TypeError: For jsonParsed data, which carries no bytes
            TransportError: If the data text is malformed
        """
        if isinstance(self.data, JsonParsedData):
            raise TypeError("jsonParsed account data has no raw bytes")
        return self.data.to_bytes()


@dataclass(frozen=True)
class KeyedAccount:
    """Account paired with its address."""

    pubkey: Address
    account: AccountInfo


# ================================================================
# Token amounts
# ================================================================


@dataclass(frozen=True)
class TokenAmount:
    """
    Token quantity in both exact and display form.

    ``amount`` and ``ui_amount_string`` are exact. ``ui_amount`` is a
    float for convenience and may lose precision for large amounts.
    """

    amount: str
    decimals: int
    ui_amount: Optional[float]
    ui_amount_string: str

    @property
    def exact(self) -> Decimal:
        """Exact decimal value."""
        return Decimal(self.ui_amount_string)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "decimals": self.decimals,
            "uiAmount": self.ui_amount,
            "uiAmountString": self.ui_amount_string,
        }

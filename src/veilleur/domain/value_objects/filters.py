"""
Account data filters - immutable server-side predicates.

Each filter is evaluated by the node against raw account bytes; the same
predicate is implemented here so filter sets can be checked client-side.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Union

import base58

from veilleur.domain.exceptions import ValidationError


def _require_u64(name: str, value: Any) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Filter {name} must be an integer, got {type(value).__name__}"
        )
    if value < 0 or value >= 2**64:
        raise ValidationError(f"Filter {name} out of u64 range: {value}")
    return value


@dataclass(frozen=True)
class _MemcmpFilter:
    """Shared memcmp behaviour; use one of the encoded subclasses."""

    offset: int
    bytes: str
    _decoded: bytes = field(init=False, repr=False, compare=False)

    encoding: ClassVar[str] = ""

    def __post_init__(self):
        """Validate offset and decode the comparison bytes once."""
        _require_u64("offset", self.offset)
        if not isinstance(self.bytes, str):
            raise ValidationError("Memcmp bytes must be an encoded string")
        object.__setattr__(self, "_decoded", self._decode(self.bytes))

    @staticmethod
    def _decode(text: str) -> bytes:
        raise NotImplementedError

    @property
    def decoded(self) -> bytes:
        """Comparison bytes."""
        return self._decoded

    def matches(self, data: bytes) -> bool:
        """
        Compare filter bytes against ``data[offset:offset + len]``.

        Out-of-range slices are a non-match, never an error.
        """
        end = self.offset + len(self._decoded)
        if end > len(data):
            return False
        return data[self.offset:end] == self._decoded

    def to_wire(self) -> Dict[str, Any]:
        """Render as a request filter object."""
        return {
            "memcmp": {
                "offset": self.offset,
                "bytes": self.bytes,
                "encoding": self.encoding,
            }
        }


@dataclass(frozen=True)
class MemcmpBase58Filter(_MemcmpFilter):
    """Memcmp filter whose bytes are base58 text."""

    encoding: ClassVar[str] = "base58"

    @staticmethod
    def _decode(text: str) -> bytes:
        try:
            return base58.b58decode(text)
        except ValueError as e:
            raise ValidationError(f"Invalid base58 memcmp bytes {text!r}: {e}") from e

    @classmethod
    def from_raw(cls, offset: int, raw: bytes) -> "MemcmpBase58Filter":
        """Build from raw comparison bytes."""
        return cls(offset=offset, bytes=base58.b58encode(raw).decode("ascii"))


@dataclass(frozen=True)
class MemcmpBase64Filter(_MemcmpFilter):
    """Memcmp filter whose bytes are base64 text."""

    encoding: ClassVar[str] = "base64"

    @staticmethod
    def _decode(text: str) -> bytes:
        try:
            return base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Invalid base64 memcmp bytes {text!r}: {e}") from e

    @classmethod
    def from_raw(cls, offset: int, raw: bytes) -> "MemcmpBase64Filter":
        """Build from raw comparison bytes."""
        return cls(offset=offset, bytes=base64.b64encode(raw).decode("ascii"))


@dataclass(frozen=True)
class DataSizeFilter:
    """Matches accounts whose data length is exactly ``size``."""

    size: int

    def __post_init__(self):
        _require_u64("size", self.size)

    def matches(self, data: bytes) -> bool:
        """Check exact data length."""
        return len(data) == self.size

    def to_wire(self) -> Dict[str, Any]:
        """Render as a request filter object."""
        return {"dataSize": self.size}


Filter = Union[MemcmpBase58Filter, MemcmpBase64Filter, DataSizeFilter]


def filter_from_wire(obj: Dict[str, Any]) -> Filter:
    """
    Parse a request filter object.

    Args:
        obj: ``{"memcmp": {...}}`` or ``{"dataSize": n}``

    Returns:
        Filter instance

    Raises:
        ValidationError: If the object is not a recognized filter
    """
    if not isinstance(obj, dict) or len(obj) != 1:
        raise ValidationError(f"Filter must be a single-key object: {obj!r}")

    if "dataSize" in obj:
        return DataSizeFilter(size=obj["dataSize"])

    memcmp = obj.get("memcmp")
    if not isinstance(memcmp, dict):
        raise ValidationError(f"Unknown filter: {obj!r}")

    # The node defaults memcmp bytes to base58
    encoding = memcmp.get("encoding", "base58")
    if encoding == "base58":
        return MemcmpBase58Filter(offset=memcmp.get("offset"), bytes=memcmp.get("bytes"))
    if encoding == "base64":
        return MemcmpBase64Filter(offset=memcmp.get("offset"), bytes=memcmp.get("bytes"))
    raise ValidationError(f"Unsupported memcmp encoding: {encoding!r}")

"""
Encoding resolution for account data.

Turns raw account bytes, or the wire form of ``account.data``, into the
EncodedData variant matching the encoding the caller requested. The
variant is fixed by the request: a response in another encoding is an
error, and jsonParsed never degrades silently into a byte encoding.
"""

import base64
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Any, Dict, Optional, Union

import base58
import zstandard

from veilleur.application.account_parsers import (
    TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_NAME,
    AccountDataDecoder,
    decode_token_mint,
)
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
from veilleur.domain.exceptions import (
    TransportError,
    UnsupportedEncodingError,
    ValidationError,
)
from veilleur.domain.value_objects.address import Address
from veilleur.domain.value_objects.encoding import AccountEncoding

EncodingLike = Union[AccountEncoding, str]

_BYTE_VARIANTS = {
    AccountEncoding.BASE58: Base58Bytes,
    AccountEncoding.BASE64: Base64Bytes,
    AccountEncoding.BASE64_ZSTD: Base64ZstdBytes,
}


def parse_encoding(value: Optional[EncodingLike]) -> Optional[AccountEncoding]:
    """
    Parse an encoding name.

    Args:
        value: AccountEncoding, its wire name, or None for the default

    Returns:
        AccountEncoding or None

    Raises:
        ValidationError: If the name is unknown
    """
    if value is None or isinstance(value, AccountEncoding):
        return value
    try:
        return AccountEncoding(value)
    except ValueError as e:
        allowed = [encoding.value for encoding in AccountEncoding]
        raise ValidationError(
            f"Invalid encoding {value!r}. Must be one of: {allowed}"
        ) from e


@dataclass(frozen=True)
class _RegisteredDecoder:
    program: str
    decode: AccountDataDecoder


class EncodingResolver:
    """
    Produces encoded account data and token amounts.

    jsonParsed decoders are registered per owning program. The SPL Token
    mint decoder is registered by default.
    """

    def __init__(self, register_defaults: bool = True):
        """
        Initialize encoding resolver.

        Args:
            register_defaults: Register the built-in program decoders
        """
        self._decoders: Dict[str, _RegisteredDecoder] = {}
        if register_defaults:
            self.register(TOKEN_PROGRAM_ID, TOKEN_PROGRAM_NAME, decode_token_mint)

    # ================================================================
    # Decoder registry
    # ================================================================

    def register(
        self,
        program_id: Union[Address, str],
        program_name: str,
        decoder: AccountDataDecoder,
    ) -> None:
        """
        Register a jsonParsed decoder for accounts owned by a program.

        Args:
            program_id: Owning program address
            program_name: Name reported as ``program`` in parsed data
            decoder: Callable turning raw bytes into the parsed object
        """
        key = str(Address.coerce(program_id))
        self._decoders[key] = _RegisteredDecoder(program=program_name, decode=decoder)

    def has_decoder(self, owner: Union[Address, str]) -> bool:
        """Check if a jsonParsed decoder exists for ``owner``."""
        return str(owner) in self._decoders

    # ================================================================
    # Raw bytes -> EncodedData
    # ================================================================

    def resolve(
        self,
        encoding: Optional[EncodingLike],
        raw: bytes,
        owner: Optional[Union[Address, str]] = None,
    ) -> EncodedData:
        """
        Encode raw account bytes in the requested encoding.

        Args:
            encoding: Requested encoding (None means base58)
            raw: Raw account bytes
            owner: Owning program, required for jsonParsed

        Returns:
            EncodedData variant tagged with the requested encoding

        Raises:
            UnsupportedEncodingError: jsonParsed with no registered decoder
        """
        encoding = parse_encoding(encoding) or AccountEncoding.BASE58

        if encoding is AccountEncoding.BASE58:
            return Base58Bytes(base58.b58encode(raw).decode("ascii"))
        if encoding is AccountEncoding.BASE64:
            return Base64Bytes(base64.b64encode(raw).decode("ascii"))
        if encoding is AccountEncoding.BASE64_ZSTD:
            compressed = zstandard.ZstdCompressor().compress(raw)
            return Base64ZstdBytes(base64.b64encode(compressed).decode("ascii"))

        return self._parse_with_decoder(raw, owner)

    def _parse_with_decoder(
        self, raw: bytes, owner: Optional[Union[Address, str]]
    ) -> JsonParsedData:
        registered = self._decoders.get(str(owner)) if owner is not None else None
        if registered is None:
            raise UnsupportedEncodingError(
                f"No jsonParsed decoder registered for owner {owner}",
                requested=AccountEncoding.JSON_PARSED.value,
                owner=None if owner is None else str(owner),
            )
        return JsonParsedData(
            program=registered.program,
            parsed=registered.decode(raw),
            space=len(raw),
        )

    # ================================================================
    # Wire data -> EncodedData
    # ================================================================

    def decode(
        self,
        encoding: Optional[EncodingLike],
        wire_data: Any,
        owner: Optional[Union[Address, str]] = None,
    ) -> EncodedData:
        """
        Decode the wire form of ``account.data``.

        Args:
            encoding: Encoding the request asked for (None means default)
            wire_data: Bare base58 string, ``[text, encoding]`` pair, or
                parsed object
            owner: Owning program, used when the node could not parse

        Returns:
            EncodedData variant tagged with the requested encoding

        Raises:
            UnsupportedEncodingError: Encoding differs from the request
            TransportError: Wire data has no recognizable shape
        """
        requested = parse_encoding(encoding)

        # Legacy default: bare base58 string
        if isinstance(wire_data, str):
            if requested not in (None, AccountEncoding.BASE58):
                raise UnsupportedEncodingError(
                    f"Requested {requested} but node returned bare base58 data",
                    requested=str(requested),
                    owner=None if owner is None else str(owner),
                )
            return Base58Bytes(wire_data)

        if isinstance(wire_data, dict):
            if requested is not AccountEncoding.JSON_PARSED:
                raise UnsupportedEncodingError(
                    f"Requested {requested or AccountEncoding.BASE58} "
                    f"but node returned parsed data",
                    requested=str(requested or AccountEncoding.BASE58),
                )
            try:
                return JsonParsedData(
                    program=str(wire_data["program"]),
                    parsed=wire_data["parsed"],
                    space=parse_u64(wire_data["space"], "data.space"),
                )
            except KeyError as e:
                raise TransportError(f"Parsed account data missing {e}") from e

        if (
            isinstance(wire_data, (list, tuple))
            and len(wire_data) == 2
            and isinstance(wire_data[0], str)
        ):
            text, tag = wire_data
            try:
                received = AccountEncoding(tag)
            except ValueError as e:
                raise TransportError(f"Unknown data encoding from node: {tag!r}") from e
            if not received.is_binary():
                raise TransportError(f"Byte pair tagged as {received}: {wire_data!r}")

            expected = requested or AccountEncoding.BASE58
            if received is expected:
                return _BYTE_VARIANTS[received](text)

            # Node could not parse: try a local decoder, never a byte fallback
            if expected is AccountEncoding.JSON_PARSED and received.is_binary():
                raw = _BYTE_VARIANTS[received](text).to_bytes()
                return self._parse_with_decoder(raw, owner)

            raise UnsupportedEncodingError(
                f"Requested {expected} but node returned {received}",
                requested=expected.value,
                owner=None if owner is None else str(owner),
            )

        raise TransportError(f"Unrecognized account data shape: {wire_data!r}")

    def decode_account(
        self, encoding: Optional[EncodingLike], wire_account: Any
    ) -> AccountInfo:
        """
        Decode a wire account object.

        Args:
            encoding: Encoding the request asked for
            wire_account: ``{"owner", "lamports", "data", "executable",
                "rentEpoch", "space"?}``

        Returns:
            AccountInfo

        Raises:
            TransportError: If fields are missing or malformed
            UnsupportedEncodingError: If the data encoding differs
        """
        if not isinstance(wire_account, dict):
            raise TransportError(f"Account is not an object: {wire_account!r}")

        try:
            owner = Address.from_string(wire_account["owner"])
            lamports = parse_u64(wire_account["lamports"], "lamports")
            rent_epoch = parse_u64(wire_account["rentEpoch"], "rentEpoch")
            executable = wire_account["executable"]
            wire_data = wire_account["data"]
        except KeyError as e:
            raise TransportError(f"Account missing field {e}") from e
        except ValidationError as e:
            raise TransportError(f"Account owner invalid: {e.message}") from e

        if not isinstance(executable, bool):
            raise TransportError(
                f"Field executable must be a bool, got {type(executable).__name__}",
                details={"field": "executable"},
            )

        space = wire_account.get("space")
        return AccountInfo(
            owner=owner,
            lamports=lamports,
            data=self.decode(encoding, wire_data, owner=owner),
            executable=executable,
            rent_epoch=rent_epoch,
            space=None if space is None else parse_u64(space, "space"),
        )

    def decode_optional_account(
        self, encoding: Optional[EncodingLike], wire_account: Any
    ) -> Optional[AccountInfo]:
        """Decode an account that may not exist (``null`` on the wire)."""
        if wire_account is None:
            return None
        return self.decode_account(encoding, wire_account)

    def decode_keyed_account(
        self, encoding: Optional[EncodingLike], wire: Any
    ) -> KeyedAccount:
        """Decode a ``{"pubkey", "account"}`` object."""
        if not isinstance(wire, dict) or "pubkey" not in wire or "account" not in wire:
            raise TransportError(f"Keyed account malformed: {wire!r}")
        try:
            pubkey = Address.from_string(wire["pubkey"])
        except ValidationError as e:
            raise TransportError(f"Keyed account pubkey invalid: {e.message}") from e
        return KeyedAccount(
            pubkey=pubkey,
            account=self.decode_account(encoding, wire["account"]),
        )

    # ================================================================
    # Token amounts
    # ================================================================

    @staticmethod
    def token_amount(amount: Union[str, int], decimals: int) -> TokenAmount:
        """
        Derive display values from an exact integer amount.

        The exact string is computed with decimal arithmetic; the float is
        a convenience that may lose precision for large amounts.

        Args:
            amount: Integer amount in base units (decimal string or int)
            decimals: Number of decimal places of the token

        Returns:
            TokenAmount

        Examples:
            >>> EncodingResolver.token_amount("1690580887590527729", 6).ui_amount_string
            '1690580887590.527729'
        """
        base_units = parse_u64(amount, "amount")
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 255:
            raise TransportError(f"Invalid token decimals: {decimals!r}")

        # u64 has at most 20 digits; precision must cover digits + scale
        with localcontext() as ctx:
            ctx.prec = 20 + decimals + 1
            exact = Decimal(base_units).scaleb(-decimals)

        text = format(exact, "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")

        return TokenAmount(
            amount=str(base_units),
            decimals=decimals,
            ui_amount=float(exact),
            ui_amount_string=text,
        )

    def decode_token_amount(self, wire: Any) -> TokenAmount:
        """
        Decode a wire token amount from its exact fields.

        ``uiAmount`` and ``uiAmountString`` on the wire are ignored and
        recomputed from ``amount`` and ``decimals``.
        """
        if not isinstance(wire, dict) or "amount" not in wire or "decimals" not in wire:
            raise TransportError(f"Token amount malformed: {wire!r}")
        return self.token_amount(wire["amount"], wire["decimals"])

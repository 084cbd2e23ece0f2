"""
Unit tests for EncodingResolver.

Usage:
    pytest tests/unit/application/test_encoding_resolver.py
"""

import base64

import pytest
from helpers import SYSTEM_PROGRAM, TOKEN_PROGRAM, b64, encode_token_mint, wire_account

from veilleur.application import EncodingResolver, parse_encoding
from veilleur.application.account_parsers import MINT_SIZE, decode_token_mint
from veilleur.domain.entities import (
    Base58Bytes,
    Base64Bytes,
    Base64ZstdBytes,
    JsonParsedData,
)
from veilleur.domain.exceptions import (
    TransportError,
    UnsupportedEncodingError,
    ValidationError,
)
from veilleur.domain.value_objects import AccountEncoding, Address

MINT_AUTHORITY = Address.from_bytes(bytes(range(1, 33)))


@pytest.fixture
def resolver() -> EncodingResolver:
    return EncodingResolver()


class TestResolve:
    """Unit tests for raw bytes -> EncodedData."""

    # ================================================================
    # Binary encodings
    # ================================================================

    @pytest.mark.parametrize(
        "encoding,variant",
        [
            (None, Base58Bytes),
            ("base58", Base58Bytes),
            ("base64", Base64Bytes),
            (AccountEncoding.BASE64_ZSTD, Base64ZstdBytes),
        ],
    )
    def test_binary_encodings_preserve_bytes(self, resolver, encoding, variant):
        """Test binary variants carry the exact bytes."""
        raw = bytes(range(200))

        data = resolver.resolve(encoding, raw)

        assert isinstance(data, variant)
        assert data.to_bytes() == raw

    def test_empty_data(self, resolver):
        """Test zero-length data in every binary encoding."""
        for encoding in ("base58", "base64", "base64+zstd"):
            assert resolver.resolve(encoding, b"").to_bytes() == b""

    # ================================================================
    # jsonParsed
    # ================================================================

    def test_json_parsed_token_mint(self, resolver):
        """Test mint accounts are parsed by the registered decoder."""
        raw = encode_token_mint(
            supply=1690580887590527729, decimals=6, mint_authority=MINT_AUTHORITY
        )

        data = resolver.resolve("jsonParsed", raw, owner=TOKEN_PROGRAM)

        assert isinstance(data, JsonParsedData)
        assert data.program == "spl-token"
        assert data.space == MINT_SIZE
        assert data.parsed["type"] == "mint"
        assert data.parsed["info"] == {
            "decimals": 6,
            "freezeAuthority": None,
            "isInitialized": True,
            "mintAuthority": str(MINT_AUTHORITY),
            "supply": "1690580887590527729",
        }

    def test_json_parsed_without_decoder(self, resolver):
        """Test jsonParsed for an unknown owner never falls back."""
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            resolver.resolve("jsonParsed", b"\x01\x02", owner=SYSTEM_PROGRAM)

        assert exc_info.value.requested == "jsonParsed"
        assert exc_info.value.owner == SYSTEM_PROGRAM

    def test_json_parsed_non_mint_token_account(self, resolver):
        """Test token-owned bytes of the wrong size are unsupported."""
        with pytest.raises(UnsupportedEncodingError):
            resolver.resolve("jsonParsed", bytes(165), owner=TOKEN_PROGRAM)

    def test_register_custom_decoder(self):
        """Test decoders can be registered per program."""
        resolver = EncodingResolver(register_defaults=False)
        assert not resolver.has_decoder(TOKEN_PROGRAM)

        resolver.register(SYSTEM_PROGRAM, "system", lambda raw: {"len": len(raw)})
        data = resolver.resolve("jsonParsed", b"abc", owner=SYSTEM_PROGRAM)

        assert data.program == "system"
        assert data.parsed == {"len": 3}

    def test_unknown_encoding_name(self):
        """Test unknown encoding names are validation errors."""
        with pytest.raises(ValidationError):
            parse_encoding("base32")


class TestDecode:
    """Unit tests for wire data -> EncodedData."""

    def test_bare_string_is_base58(self, resolver):
        """Test legacy bare strings decode as base58."""
        assert resolver.decode(None, "2") == Base58Bytes("2")

    def test_pair_matching_request(self, resolver):
        """Test a tagged pair in the requested encoding."""
        assert resolver.decode("base64", ["AQI=", "base64"]) == Base64Bytes("AQI=")

    def test_pair_mismatching_request(self, resolver):
        """Test a different encoding than requested is refused."""
        with pytest.raises(UnsupportedEncodingError):
            resolver.decode("base64+zstd", ["AQI=", "base64"])

    def test_parsed_object(self, resolver):
        """Test a parsed object for a jsonParsed request."""
        data = resolver.decode(
            "jsonParsed",
            {"program": "spl-token", "parsed": {"type": "mint"}, "space": 82},
        )

        assert data == JsonParsedData(program="spl-token", parsed={"type": "mint"}, space=82)

    def test_parsed_object_not_requested(self, resolver):
        """Test parsed data is refused for a binary request."""
        with pytest.raises(UnsupportedEncodingError):
            resolver.decode("base64", {"program": "x", "parsed": {}, "space": 0})

    def test_unparsed_fallback_uses_local_decoder(self, resolver):
        """Test binary data for a jsonParsed request goes through the decoder."""
        raw = encode_token_mint(supply=5, decimals=0)

        data = resolver.decode("jsonParsed", [b64(raw), "base64"], owner=TOKEN_PROGRAM)

        assert data.parsed == decode_token_mint(raw)

    def test_unparsed_fallback_without_decoder(self, resolver):
        """Test binary data for a jsonParsed request without decoder."""
        with pytest.raises(UnsupportedEncodingError):
            resolver.decode("jsonParsed", ["AQI=", "base64"], owner=SYSTEM_PROGRAM)

    @pytest.mark.parametrize(
        "wire",
        [5, None, ["AQI="], ["AQI=", "base32"], ["{}", "jsonParsed"]],
    )
    def test_unrecognized_shapes(self, resolver, wire):
        """Test malformed data is a transport error."""
        with pytest.raises(TransportError):
            resolver.decode("base64", wire)

    def test_decode_account(self, resolver):
        """Test a full account decodes with exact integers."""
        account = resolver.decode_account(
            "base64",
            wire_account(
                data=["AQI=", "base64"],
                lamports=2039280,
                rent_epoch=18446744073709551615,
                space=2,
            ),
        )

        assert account.owner == Address.from_string(SYSTEM_PROGRAM)
        assert account.lamports == 2039280
        assert account.rent_epoch == 18446744073709551615
        assert account.space == 2
        assert account.raw_data() == b"\x01\x02"

    def test_decode_account_missing_field(self, resolver):
        """Test incomplete accounts are transport errors."""
        wire = wire_account()
        del wire["lamports"]

        with pytest.raises(TransportError):
            resolver.decode_account("base64", wire)

    @pytest.mark.parametrize("executable", ["false", 0, 1, None])
    def test_decode_account_executable_must_be_bool(self, resolver, executable):
        """Test non-bool executable flags are refused, not coerced."""
        wire = wire_account()
        wire["executable"] = executable

        with pytest.raises(TransportError):
            resolver.decode_account("base64", wire)

    def test_decode_keyed_account(self, resolver):
        """Test keyed accounts carry their pubkey."""
        keyed = resolver.decode_keyed_account(
            None, {"pubkey": TOKEN_PROGRAM, "account": wire_account(data="")}
        )

        assert str(keyed.pubkey) == TOKEN_PROGRAM
        assert keyed.account.data == Base58Bytes("")


class TestTokenAmount:
    """Unit tests for token amount derivation."""

    def test_large_supply_is_exact(self):
        """Test the exact string survives amounts beyond float precision."""
        amount = EncodingResolver.token_amount("1690580887590527729", 6)

        assert amount.amount == "1690580887590527729"
        assert amount.decimals == 6
        assert amount.ui_amount_string == "1690580887590.527729"
        assert amount.ui_amount == pytest.approx(1690580887590.5278)

    @pytest.mark.parametrize(
        "raw,decimals,expected",
        [
            ("0", 6, "0"),
            ("1", 9, "0.000000001"),
            ("1000000", 6, "1"),
            ("1500000", 6, "1.5"),
            ("18446744073709551615", 0, "18446744073709551615"),
            ("18446744073709551615", 19, "1.8446744073709551615"),
        ],
    )
    def test_ui_amount_string(self, raw, decimals, expected):
        """Test display strings trim trailing zeros only after the point."""
        assert EncodingResolver.token_amount(raw, decimals).ui_amount_string == expected

    def test_exact_property(self):
        """Test exact returns a Decimal equal to the display string."""
        amount = EncodingResolver.token_amount(12345, 2)

        assert str(amount.exact) == "123.45"

    def test_decode_token_amount_recomputes(self, resolver):
        """Test wire display values are recomputed from amount/decimals."""
        amount = resolver.decode_token_amount(
            {
                "amount": "1690580887590527729",
                "decimals": 6,
                "uiAmount": 1690580887590.5276,
                "uiAmountString": "wrong",
            }
        )

        assert amount.ui_amount_string == "1690580887590.527729"

    @pytest.mark.parametrize(
        "wire",
        [
            None,
            {"amount": "1"},
            {"amount": "1.5", "decimals": 0},
            {"amount": "1", "decimals": -1},
            {"amount": "1", "decimals": True},
        ],
    )
    def test_decode_token_amount_malformed(self, resolver, wire):
        """Test malformed token amounts are transport errors."""
        with pytest.raises(TransportError):
            resolver.decode_token_amount(wire)

    def test_zstd_wire_account(self, resolver):
        """Test zstd-compressed account data decodes through the resolver."""
        raw = bytes(100)
        encoded = resolver.resolve("base64+zstd", raw)

        account = resolver.decode_account(
            "base64+zstd", wire_account(data=encoded.to_wire())
        )

        assert account.raw_data() == raw
        assert base64.b64decode(encoded.value) != raw

"""
Program-specific account data decoders for the jsonParsed encoding.

A decoder turns raw account bytes into the ``parsed`` object the node
would return for that program.
"""

import struct
from typing import Any, Callable, Dict, Optional

from veilleur.domain.exceptions import UnsupportedEncodingError
from veilleur.domain.value_objects.address import Address

AccountDataDecoder = Callable[[bytes], Dict[str, Any]]

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_PROGRAM_NAME = "spl-token"

MINT_SIZE = 82

# COption<Pubkey>: u32 tag + 32 bytes
_COPTION_PUBKEY = struct.Struct("<I32s")
_MINT_BODY = struct.Struct("<QB?")


def _read_coption_pubkey(data: bytes, offset: int) -> Optional[str]:
    tag, key = _COPTION_PUBKEY.unpack_from(data, offset)
    if tag == 0:
        return None
    if tag != 1:
        raise ValueError(f"Invalid COption tag {tag} at offset {offset}")
    return str(Address.from_bytes(key))


def decode_token_mint(data: bytes) -> Dict[str, Any]:
    """
    Decode an SPL Token mint account.

    Layout (82 bytes): mint authority COption<Pubkey>, supply u64,
    decimals u8, is_initialized bool, freeze authority COption<Pubkey>.

    Args:
        data: Raw account bytes

    Returns:
        Parsed mint object (supply as exact decimal string)

    Raises:
        UnsupportedEncodingError: If the bytes are not a mint
    """
    if len(data) != MINT_SIZE:
        raise UnsupportedEncodingError(
            f"Account is not a token mint ({len(data)} bytes, expected {MINT_SIZE})",
            requested="jsonParsed",
            owner=TOKEN_PROGRAM_ID,
        )

    try:
        mint_authority = _read_coption_pubkey(data, 0)
        supply, decimals, is_initialized = _MINT_BODY.unpack_from(data, 36)
        freeze_authority = _read_coption_pubkey(data, 46)
    except (struct.error, ValueError) as e:
        raise UnsupportedEncodingError(
            f"Malformed token mint data: {e}",
            requested="jsonParsed",
            owner=TOKEN_PROGRAM_ID,
        ) from e

    return {
        "type": "mint",
        "info": {
            "decimals": decimals,
            "freezeAuthority": freeze_authority,
            "isInitialized": is_initialized,
            "mintAuthority": mint_authority,
            "supply": str(supply),
        },
    }


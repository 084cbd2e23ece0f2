"""
JSON-RPC error code classification.

Maps protocol error codes onto a closed set of kinds. Codes outside the
table classify as ``ErrorKind.UNKNOWN``; the raw code always stays on the
exception that carries it.
"""

from enum import Enum
from typing import Dict


class ErrorKind(str, Enum):
    """Stable error categories for programmatic matching."""

    PARSE_ERROR = "parse_error"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_PARAMS = "invalid_params"
    INTERNAL_ERROR = "internal_error"
    SLOT_UNAVAILABLE = "slot_unavailable"
    NODE_UNHEALTHY = "node_unhealthy"
    MIN_CONTEXT_SLOT_NOT_REACHED = "min_context_slot_not_reached"
    TRANSACTION_FAILURE = "transaction_failure"
    DATA_UNAVAILABLE = "data_unavailable"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        """String representation."""
        return self.value


# JSON-RPC 2.0 reserved codes
JSON_RPC_PARSE_ERROR = -32700
JSON_RPC_INVALID_REQUEST = -32600
JSON_RPC_METHOD_NOT_FOUND = -32601
JSON_RPC_INVALID_PARAMS = -32602
JSON_RPC_INTERNAL_ERROR = -32603

# Ledger server codes
SERVER_ERROR_BLOCK_CLEANED_UP = -32001
SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE = -32002
SERVER_ERROR_TRANSACTION_SIGNATURE_VERIFICATION_FAILURE = -32003
SERVER_ERROR_BLOCK_NOT_AVAILABLE = -32004
SERVER_ERROR_NODE_UNHEALTHY = -32005
SERVER_ERROR_TRANSACTION_PRECOMPILE_VERIFICATION_FAILURE = -32006
SERVER_ERROR_SLOT_SKIPPED = -32007
SERVER_ERROR_NO_SNAPSHOT = -32008
SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED = -32009
SERVER_ERROR_KEY_EXCLUDED_FROM_SECONDARY_INDEX = -32010
SERVER_ERROR_TRANSACTION_HISTORY_NOT_AVAILABLE = -32011
SERVER_ERROR_SCAN_ERROR = -32012
SERVER_ERROR_TRANSACTION_SIGNATURE_LEN_MISMATCH = -32013
SERVER_ERROR_BLOCK_STATUS_NOT_AVAILABLE_YET = -32014
SERVER_ERROR_UNSUPPORTED_TRANSACTION_VERSION = -32015
SERVER_ERROR_MIN_CONTEXT_SLOT_NOT_REACHED = -32016
SERVER_ERROR_EPOCH_REWARDS_PERIOD_ACTIVE = -32017
SERVER_ERROR_SLOT_NOT_EPOCH_BOUNDARY = -32018
SERVER_ERROR_LONG_TERM_STORAGE_UNREACHABLE = -32019

_KINDS: Dict[int, ErrorKind] = {
    JSON_RPC_PARSE_ERROR: ErrorKind.PARSE_ERROR,
    JSON_RPC_INVALID_REQUEST: ErrorKind.INVALID_REQUEST,
    JSON_RPC_METHOD_NOT_FOUND: ErrorKind.METHOD_NOT_FOUND,
    JSON_RPC_INVALID_PARAMS: ErrorKind.INVALID_PARAMS,
    JSON_RPC_INTERNAL_ERROR: ErrorKind.INTERNAL_ERROR,
    SERVER_ERROR_BLOCK_CLEANED_UP: ErrorKind.SLOT_UNAVAILABLE,
    SERVER_ERROR_BLOCK_NOT_AVAILABLE: ErrorKind.SLOT_UNAVAILABLE,
    SERVER_ERROR_SLOT_SKIPPED: ErrorKind.SLOT_UNAVAILABLE,
    SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED: ErrorKind.SLOT_UNAVAILABLE,
    SERVER_ERROR_BLOCK_STATUS_NOT_AVAILABLE_YET: ErrorKind.SLOT_UNAVAILABLE,
    SERVER_ERROR_SLOT_NOT_EPOCH_BOUNDARY: ErrorKind.SLOT_UNAVAILABLE,
    SERVER_ERROR_NODE_UNHEALTHY: ErrorKind.NODE_UNHEALTHY,
    SERVER_ERROR_NO_SNAPSHOT: ErrorKind.NODE_UNHEALTHY,
    SERVER_ERROR_LONG_TERM_STORAGE_UNREACHABLE: ErrorKind.NODE_UNHEALTHY,
    SERVER_ERROR_MIN_CONTEXT_SLOT_NOT_REACHED: ErrorKind.MIN_CONTEXT_SLOT_NOT_REACHED,
    SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE: ErrorKind.TRANSACTION_FAILURE,
    SERVER_ERROR_TRANSACTION_SIGNATURE_VERIFICATION_FAILURE: ErrorKind.TRANSACTION_FAILURE,
    SERVER_ERROR_TRANSACTION_PRECOMPILE_VERIFICATION_FAILURE: ErrorKind.TRANSACTION_FAILURE,
    SERVER_ERROR_TRANSACTION_SIGNATURE_LEN_MISMATCH: ErrorKind.TRANSACTION_FAILURE,
    SERVER_ERROR_UNSUPPORTED_TRANSACTION_VERSION: ErrorKind.TRANSACTION_FAILURE,
    SERVER_ERROR_KEY_EXCLUDED_FROM_SECONDARY_INDEX: ErrorKind.DATA_UNAVAILABLE,
    SERVER_ERROR_TRANSACTION_HISTORY_NOT_AVAILABLE: ErrorKind.DATA_UNAVAILABLE,
    SERVER_ERROR_SCAN_ERROR: ErrorKind.DATA_UNAVAILABLE,
    SERVER_ERROR_EPOCH_REWARDS_PERIOD_ACTIVE: ErrorKind.DATA_UNAVAILABLE,
}


def classify(code: int) -> ErrorKind:
    """
    Classify a JSON-RPC error code.

    Args:
        code: Numeric error code from the wire

    Returns:
        Matching ErrorKind, or ErrorKind.UNKNOWN for unrecognized codes

    Examples:
        >>> classify(-32602)
        <ErrorKind.INVALID_PARAMS: 'invalid_params'>
        >>> classify(-1)
        <ErrorKind.UNKNOWN: 'unknown'>
    """
    return _KINDS.get(code, ErrorKind.UNKNOWN)


def is_known(code: int) -> bool:
    """Check whether a code belongs to the classified set."""
    return code in _KINDS

"""
Unit tests for error classification and ProtocolError.

Usage:
    pytest tests/unit/domain/test_error_classifier.py
"""

import pytest

from veilleur.domain.exceptions import ProtocolError, TransportError
from veilleur.domain.services.error_classifier import ErrorKind, classify, is_known


class TestErrorClassifier:
    """Unit tests for classify()."""

    @pytest.mark.parametrize(
        "code,kind",
        [
            (-32700, ErrorKind.PARSE_ERROR),
            (-32600, ErrorKind.INVALID_REQUEST),
            (-32601, ErrorKind.METHOD_NOT_FOUND),
            (-32602, ErrorKind.INVALID_PARAMS),
            (-32603, ErrorKind.INTERNAL_ERROR),
            (-32004, ErrorKind.SLOT_UNAVAILABLE),
            (-32005, ErrorKind.NODE_UNHEALTHY),
            (-32016, ErrorKind.MIN_CONTEXT_SLOT_NOT_REACHED),
            (-32002, ErrorKind.TRANSACTION_FAILURE),
            (-32010, ErrorKind.DATA_UNAVAILABLE),
        ],
    )
    def test_known_codes(self, code, kind):
        """Test reserved and server codes map to stable kinds."""
        assert classify(code) is kind
        assert is_known(code)

    @pytest.mark.parametrize("code", [0, -1, -32000, -32099, 404])
    def test_unknown_codes(self, code):
        """Test unrecognized codes classify as UNKNOWN."""
        assert classify(code) is ErrorKind.UNKNOWN
        assert not is_known(code)

    def test_kind_str(self):
        """Test str() gives the wire-friendly name."""
        assert str(ErrorKind.INVALID_PARAMS) == "invalid_params"


class TestProtocolError:
    """Unit tests for ProtocolError."""

    def test_from_error_object_keeps_raw_fields(self):
        """Test code, message and data are preserved."""
        error = ProtocolError.from_error_object(
            {
                "code": -32602,
                "message": "Invalid param: not a Token mint",
                "data": {"detail": 1},
            },
            method="getTokenSupply",
        )

        assert error.code == -32602
        assert error.rpc_message == "Invalid param: not a Token mint"
        assert error.data == {"detail": 1}
        assert error.method == "getTokenSupply"
        assert error.kind is ErrorKind.INVALID_PARAMS
        assert "-32602" in str(error)

    def test_unknown_code_kept(self):
        """Test an unclassified code still builds an error."""
        error = ProtocolError.from_error_object({"code": -1, "message": "boom"})

        assert error.kind is ErrorKind.UNKNOWN
        assert error.code == -1

    @pytest.mark.parametrize(
        "wire",
        [None, "oops", {"message": "no code"}, {"code": "-32602", "message": "x"}],
    )
    def test_malformed_error_object(self, wire):
        """Test unreadable error objects are transport errors."""
        with pytest.raises(TransportError):
            ProtocolError.from_error_object(wire, method="getBalance")

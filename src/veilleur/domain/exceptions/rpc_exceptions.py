"""
RPC client exceptions.

Closed taxonomy of failures surfaced to callers. Nothing in the client
swallows these; retries (if any) happen inside the HTTP transport only.
"""

from typing import Any, Optional

from veilleur.domain.services.error_classifier import ErrorKind, classify


class VeilleurException(Exception):
    """Base exception for ledger client operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(VeilleurException):
    """Malformed input detected before any network call."""


class TransportError(VeilleurException):
    """Connection-level failure or an unreadable frame."""


class UnsupportedEncodingError(VeilleurException):
    """Requested encoding cannot be honoured without a silent fallback."""

    def __init__(
        self,
        message: str,
        requested: Optional[str] = None,
        owner: Optional[str] = None,
    ):
        """
        Initialize unsupported encoding error.

        Args:
            message: Error message
            requested: Encoding the caller asked for
            owner: Owning program of the account, when known
        """
        super().__init__(message, details={"requested": requested, "owner": owner})
        self.requested = requested
        self.owner = owner


class ProtocolError(VeilleurException):
    """
    Server returned a JSON-RPC error object.

    The raw code and message are always kept; ``kind`` is the stable
    classification to match on programmatically.
    """

    def __init__(
        self,
        code: int,
        message: str,
        data: Any = None,
        method: Optional[str] = None,
    ):
        """
        Initialize protocol error.

        Args:
            code: Numeric JSON-RPC error code
            message: Server error message
            data: Optional opaque error payload
            method: RPC method that failed
        """
        super().__init__(
            f"RPC error {code}: {message}",
            details={"code": code, "method": method, "data": data},
        )
        self.code = code
        self.rpc_message = message
        self.data = data
        self.method = method
        self.kind: ErrorKind = classify(code)

    @classmethod
    def from_error_object(
        cls, error: Any, method: Optional[str] = None
    ) -> "ProtocolError":
        """
        Build from a wire ``error`` member.

        Args:
            error: Decoded ``{"code", "message", "data"?}`` object
            method: RPC method that failed

        Returns:
            ProtocolError instance

        Raises:
            TransportError: If the error object is malformed
        """
        if not isinstance(error, dict) or not isinstance(error.get("code"), int):
            raise TransportError(
                f"Malformed RPC error object: {error!r}",
                details={"method": method},
            )
        return cls(
            code=error["code"],
            message=str(error.get("message", "")),
            data=error.get("data"),
            method=method,
        )


class SubscriptionError(VeilleurException):
    """Terminal error of a notification sequence."""

    def __init__(self, message: str, subscription_id: Optional[int] = None):
        super().__init__(message, details={"subscription_id": subscription_id})
        self.subscription_id = subscription_id

"""
Transport collaborator interfaces.

Transports frame and deliver JSON-shaped messages; they know nothing of
accounts, encodings or commitments. Everything environment specific is
passed in through a TransportContext at construction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class TransportContext:
    """
    Runtime capabilities and identity injected into a transport.

    Attributes:
        platform: Name of the hosting runtime, sent for diagnostics
        user_agent: User-Agent header value
        headers: Extra headers added to every request/handshake
        request_timeout: Per-request timeout in seconds
    """

    platform: str = "python"
    user_agent: str = "veilleur/0.1.0"
    headers: Mapping[str, str] = field(default_factory=dict)
    request_timeout: float = 10.0

    def request_headers(self) -> Dict[str, str]:
        """Headers for an outgoing request."""
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            "Solana-Client": f"veilleur-{self.platform}",
        }
        headers.update(self.headers)
        return headers


class RpcTransport(ABC):
    """Request/response transport: one JSON payload in, one out."""

    @abstractmethod
    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deliver a request and return the decoded response object.

        Raises:
            TransportError: On connection failure or unreadable response
        """

    async def close(self) -> None:
        """Release transport resources."""


class SubscriptionTransport(ABC):
    """Full-duplex message transport for push notifications."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection."""

    @abstractmethod
    async def send(self, message: Dict[str, Any]) -> None:
        """
        Send one message.

        Raises:
            TransportError: If the connection is unusable
        """

    @abstractmethod
    async def receive(self) -> Dict[str, Any]:
        """
        Wait for the next inbound message.

        Raises:
            TransportError: When the connection fails or closes
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""

"""
WebSocket transport for push notifications.
"""

import json
from typing import Any, Dict, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from veilleur.domain.exceptions import TransportError
from veilleur.infrastructure.transport.base import (
    SubscriptionTransport,
    TransportContext,
)


class WebSocketTransport(SubscriptionTransport):
    """
    JSON messages over one WebSocket connection.

    Reconnection is out of scope: a closed connection surfaces as a
    TransportError from ``receive`` and ends every subscription on it.
    """

    def __init__(self, url: str, context: Optional[TransportContext] = None):
        """
        Initialize WebSocket transport.

        Args:
            url: WebSocket endpoint URL (ws:// or wss://)
            context: Injected runtime context (headers, timeout)
        """
        self.url = url
        self.context = context or TransportContext()
        self._connection: Optional[ClientConnection] = None

    @property
    def connected(self) -> bool:
        """Check if a connection is open."""
        return self._connection is not None

    async def connect(self) -> None:
        """Open the WebSocket connection."""
        if self._connection is not None:
            return
        headers = dict(self.context.headers)
        try:
            self._connection = await connect(
                self.url,
                additional_headers=headers,
                user_agent_header=self.context.user_agent,
                open_timeout=self.context.request_timeout,
            )
        except (OSError, WebSocketException, TimeoutError) as e:
            raise TransportError(
                f"WebSocket connection failed: {e}",
                details={"url": self.url},
            ) from e

    def _require_connection(self) -> ClientConnection:
        if self._connection is None:
            raise TransportError("WebSocket is not connected", details={"url": self.url})
        return self._connection

    async def send(self, message: Dict[str, Any]) -> None:
        """Send one JSON message."""
        connection = self._require_connection()
        try:
            await connection.send(json.dumps(message))
        except ConnectionClosed as e:
            raise TransportError(f"WebSocket closed while sending: {e}") from e

    async def receive(self) -> Dict[str, Any]:
        """Receive and decode the next JSON message."""
        connection = self._require_connection()
        try:
            raw = await connection.recv()
        except ConnectionClosed as e:
            raise TransportError(f"WebSocket closed: {e}") from e

        try:
            message = json.loads(raw)
        except ValueError as e:
            raise TransportError(f"WebSocket frame is not JSON: {e}") from e

        if not isinstance(message, dict):
            raise TransportError(f"WebSocket frame is not an object: {message!r}")
        return message

    async def close(self) -> None:
        """Close the connection."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            await connection.close()

"""
Test helpers: in-memory transports and wire builders.

Provides in-memory transports so client behaviour can be exercised
without a ledger node.
"""

import asyncio
import base64
import itertools
import struct
from collections import deque
from typing import Any, Callable, Dict, List, Optional

from veilleur.domain.exceptions import TransportError
from veilleur.domain.value_objects import Address
from veilleur.infrastructure.transport.base import RpcTransport, SubscriptionTransport

SYSTEM_PROGRAM = "11111111111111111111111111111111"
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


# ================================================================
# Fake transports
# ================================================================


class FakeRpcTransport(RpcTransport):
    """Scripted request/response transport that records every payload."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.closed = False
        self._responses: deque = deque()

    def respond(self, result: Any) -> None:
        """Queue a successful response."""
        self._responses.append({"result": result})

    def respond_error(self, code: int, message: str, data: Any = None) -> None:
        """Queue a JSON-RPC error response."""
        error = {"code": code, "message": message}
        if data is not None:
            error["data"] = data
        self._responses.append({"error": error})

    def fail(self, error: Exception) -> None:
        """Queue a transport-level failure."""
        self._responses.append(error)

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.sent.append(payload)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {payload['method']}")
        entry = self._responses.popleft()
        if isinstance(entry, Exception):
            raise entry
        response = {"jsonrpc": "2.0", "id": payload["id"]}
        response.update(entry)
        return response

    async def close(self) -> None:
        self.closed = True


class FakeSubscriptionTransport(SubscriptionTransport):
    """
    In-memory push transport.

    Subscribe requests are acknowledged with increasing ids and
    unsubscribe requests with ``True``, unless overridden per method.
    """

    def __init__(self, first_subscription_id: int = 100):
        self.sent: List[Dict[str, Any]] = []
        self.connected = False
        self.closed = False
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.replies: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {}
        self._subscription_ids = itertools.count(first_subscription_id)

    async def connect(self) -> None:
        self.connected = True

    async def send(self, message: Dict[str, Any]) -> None:
        if self.closed:
            raise TransportError("Fake transport closed")
        self.sent.append(message)

        method = message["method"]
        if method in self.replies:
            reply = self.replies[method](message)
            if reply is None:
                return
        elif method.endswith("Unsubscribe"):
            reply = {"result": True}
        elif method.endswith("Subscribe"):
            reply = {"result": next(self._subscription_ids)}
        else:
            reply = {"result": None}

        response = {"jsonrpc": "2.0", "id": message["id"]}
        response.update(reply)
        self.inbound.put_nowait(response)

    async def receive(self) -> Dict[str, Any]:
        item = await self.inbound.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True

    def notify(self, method: str, subscription_id: int, result: Any) -> None:
        """Push a notification."""
        self.inbound.put_nowait(
            {
                "jsonrpc": "2.0",
                "method": method,
                "params": {"subscription": subscription_id, "result": result},
            }
        )

    def drop(self, message: str = "connection reset", error: Optional[Exception] = None) -> None:
        """Simulate a connection failure (TransportError unless ``error`` is given)."""
        self.inbound.put_nowait(error or TransportError(message))

    def requests(self, method: str) -> List[Dict[str, Any]]:
        """Sent requests for one method."""
        return [message for message in self.sent if message["method"] == method]


# ================================================================
# Wire builders
# ================================================================


def wire_envelope(slot: int, value: Any) -> Dict[str, Any]:
    """Build a ``{"context", "value"}`` result."""
    return {"context": {"slot": slot, "apiVersion": "2.0.15"}, "value": value}


def wire_account(
    data: Any = None,
    owner: str = SYSTEM_PROGRAM,
    lamports: Any = 1_000_000,
    rent_epoch: Any = 18446744073709551615,
    executable: bool = False,
    space: Optional[int] = None,
) -> Dict[str, Any]:
    """Build a wire account object (base64-encoded empty data by default)."""
    account = {
        "data": data if data is not None else ["", "base64"],
        "executable": executable,
        "lamports": lamports,
        "owner": owner,
        "rentEpoch": rent_epoch,
    }
    if space is not None:
        account["space"] = space
    return account


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")




def encode_token_mint(
    supply: int,
    decimals: int,
    mint_authority: Optional[Address] = None,
    freeze_authority: Optional[Address] = None,
    is_initialized: bool = True,
) -> bytes:
    """Pack mint fields into the 82-byte SPL Token mint layout."""

    def coption(key: Optional[Address]) -> bytes:
        if key is None:
            return struct.pack("<I32s", 0, bytes(32))
        return struct.pack("<I32s", 1, key.raw)

    return (
        coption(mint_authority)
        + struct.pack("<QB?", supply, decimals, is_initialized)
        + coption(freeze_authority)
    )

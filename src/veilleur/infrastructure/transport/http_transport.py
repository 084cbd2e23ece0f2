"""
HTTP JSON-RPC transport with retry.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from veilleur.domain.exceptions import TransportError
from veilleur.infrastructure.resilience import Retry, RetryConfig
from veilleur.infrastructure.transport.base import RpcTransport, TransportContext


class HttpRpcTransport(RpcTransport):
    """
    JSON-RPC over HTTP POST.

    Connection failures and timeouts are retried with backoff; a response
    that carries a JSON-RPC ``error`` member is returned as-is, since that
    is a protocol answer and not a transport failure.
    """

    def __init__(
        self,
        url: str,
        context: Optional[TransportContext] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize HTTP transport.

        Args:
            url: RPC endpoint URL
            context: Injected runtime context (headers, timeout)
            retry_config: Retry policy for transient failures
        """
        self.url = url
        self.context = context or TransportContext()
        self.retry = Retry(retry_config or RetryConfig())
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """
        Get or create the HTTP session.

        Returns:
            aiohttp ClientSession
        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.context.request_headers(),
                timeout=aiohttp.ClientTimeout(total=self.context.request_timeout),
            )
        return self._session

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Post a request with retry.

        Args:
            payload: JSON-RPC request object

        Returns:
            Decoded JSON-RPC response object

        Raises:
            TransportError: When all attempts fail
        """
        return await self.retry.execute_async(self._post, payload)

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Single POST attempt."""
        method = payload.get("method")
        try:
            async with self.session.post(self.url, json=payload) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TransportError(
                f"RPC connection error: {e}",
                details={"method": method, "url": self.url},
            ) from e
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"RPC timeout: {method}",
                details={"method": method, "timeout": self.context.request_timeout},
            ) from e
        except ValueError as e:
            raise TransportError(
                f"RPC response is not JSON: {e}",
                details={"method": method},
            ) from e

        if not isinstance(data, dict):
            raise TransportError(
                f"RPC response is not an object: {data!r}",
                details={"method": method},
            )
        return data

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

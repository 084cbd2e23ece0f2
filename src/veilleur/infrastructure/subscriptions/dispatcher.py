"""
Subscription dispatcher - single reader of a push transport.

One dispatcher owns one SubscriptionTransport. Its reader task is the
only consumer of inbound messages: it resolves pending requests by
request id and routes notifications by subscription id. The routing
table is mutated only by dispatcher methods, and a route is registered
inside the reader when the subscribe acknowledgement is processed, so no
notification can arrive ahead of its route.
"""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from veilleur.domain.exceptions import (
    ProtocolError,
    SubscriptionError,
    TransportError,
)
from veilleur.infrastructure.transport.base import SubscriptionTransport
from veilleur.reporter import SystemReporter


class _Closed:
    """Marker left in a delivery queue after local cancellation."""

    def __repr__(self) -> str:
        return "<closed>"


CLOSED = _Closed()


@dataclass(frozen=True)
class Terminal:
    """Final item of a route that ended with an error."""

    error: SubscriptionError


class SubscriptionRoute:
    """
    Delivery path for one subscription id.

    Inbound payloads are parked in an unbounded backlog by the reader and
    moved into the bounded delivery ``queue`` by a per-route task. A slow
    consumer therefore blocks delivery for its own id only, in arrival
    order, without stalling the reader or dropping messages.

    The backlog holds at most ``backlog_limit`` items. A consumer that
    falls further behind has its route failed with SubscriptionError; the
    backlog is discarded and other routes are unaffected.
    """

    def __init__(self, queue_size: int, backlog_limit: int = 10_000):
        self.subscription_id: Optional[int] = None
        self.backlog_limit = backlog_limit
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._backlog: asyncio.Queue = asyncio.Queue()
        self._deliverer: Optional[asyncio.Task] = None
        self.closed = False

    @property
    def backlog_size(self) -> int:
        """Items received but not yet in the delivery queue."""
        return self._backlog.qsize()

    def start(self, subscription_id: int) -> None:
        """Bind the server-issued id and start delivery."""
        self.subscription_id = subscription_id
        self._deliverer = asyncio.create_task(
            self._deliver(), name=f"veilleur-route-{subscription_id}"
        )

    def push(self, payload: Any) -> None:
        """Accept one inbound item (never blocks)."""
        if not self.closed:
            self._backlog.put_nowait(payload)

    def fail(self, error: SubscriptionError) -> None:
        """Deliver ``error`` after everything already received."""
        if not self.closed:
            self._backlog.put_nowait(Terminal(error))

    def overflow(self, error: SubscriptionError) -> None:
        """Discard the backlog and deliver ``error`` next."""
        if self.closed:
            return
        while not self._backlog.empty():
            self._backlog.get_nowait()
        self._backlog.put_nowait(Terminal(error))

    @property
    def overflowing(self) -> bool:
        """Check if the backlog is past its limit."""
        return self._backlog.qsize() > self.backlog_limit

    def close(self) -> None:
        """
        Cancel delivery locally.

        Stops the delivery task, discards undelivered items and leaves a
        close marker for a consumer waiting on the queue.
        """
        if self.closed:
            return
        self.closed = True
        if self._deliverer is not None:
            self._deliverer.cancel()
        while not self.queue.empty():
            self.queue.get_nowait()
        self.queue.put_nowait(CLOSED)

    async def _deliver(self) -> None:
        while True:
            item = await self._backlog.get()
            await self.queue.put(item)
            if isinstance(item, Terminal):
                return


@dataclass
class _PendingRequest:
    method: str
    future: asyncio.Future
    route: Optional[SubscriptionRoute] = None


class SubscriptionDispatcher:
    """
    Multiplexes requests and subscriptions over one push transport.

    Example:
        dispatcher = SubscriptionDispatcher(WebSocketTransport(url))
        await dispatcher.start()
        route = await dispatcher.open_route("slotSubscribe", [])
        payload = await route.queue.get()
        dispatcher.close_route(route.subscription_id)
        await dispatcher.close()
    """

    def __init__(
        self,
        transport: SubscriptionTransport,
        queue_size: int = 256,
        ack_timeout: float = 15.0,
        reporter: Optional[SystemReporter] = None,
        backlog_limit: int = 10_000,
    ):
        """
        Initialize dispatcher.

        Args:
            transport: Push transport (exclusively read by this dispatcher)
            queue_size: Bound of each route's delivery queue
            ack_timeout: Seconds to wait for a request acknowledgement
            reporter: Optional SystemReporter
            backlog_limit: Undelivered items a route may hold before it fails
        """
        self.transport = transport
        self.queue_size = queue_size
        self.backlog_limit = backlog_limit
        self.ack_timeout = ack_timeout
        self.reporter = reporter

        self._routes: Dict[int, SubscriptionRoute] = {}
        self._pending: Dict[int, _PendingRequest] = {}
        self._request_ids = itertools.count(1)
        self._reader: Optional[asyncio.Task] = None
        self._failure: Optional[TransportError] = None
        self._closed = False

    # ================================================================
    # Lifecycle
    # ================================================================

    @property
    def running(self) -> bool:
        """Check if the reader task is alive."""
        return self._reader is not None and not self._reader.done()

    @property
    def usable(self) -> bool:
        """Check if requests can still be sent."""
        return self._reader is not None and self._failure is None and not self._closed

    @property
    def active_subscriptions(self) -> List[int]:
        """Ids with a registered route."""
        return list(self._routes)

    async def start(self) -> None:
        """Connect the transport and start the reader task."""
        if self._reader is not None:
            return
        await self.transport.connect()
        self._reader = asyncio.create_task(self._read_loop(), name="veilleur-dispatcher")
        if self.reporter:
            self.reporter.info(
                "Dispatcher started", context="SubscriptionDispatcher", verbose_level=2
            )

    async def close(self) -> None:
        """Close every route, stop the reader and close the transport."""
        if self._closed:
            return
        self._closed = True

        for route in self._routes.values():
            route.close()
        self._routes.clear()

        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass

        self._fail_pending(TransportError("Dispatcher closed"))
        await self.transport.close()

        if self.reporter:
            self.reporter.info(
                "Dispatcher closed", context="SubscriptionDispatcher", verbose_level=2
            )

    def _ensure_usable(self) -> None:
        if self._failure is not None:
            raise TransportError(
                f"Dispatcher transport failed: {self._failure.message}"
            ) from self._failure
        if self._closed:
            raise TransportError("Dispatcher closed")
        if self._reader is None:
            raise TransportError("Dispatcher not started")

    # ================================================================
    # Requests
    # ================================================================

    async def request(self, method: str, params: list) -> Any:
        """
        Send a request over the push transport and await its result.

        Args:
            method: RPC method name
            params: Positional parameters

        Returns:
            The ``result`` member of the response

        Raises:
            ProtocolError: If the server answered with an error
            TransportError: On transport failure or ack timeout
        """
        return await self._call(method, params, None)

    async def open_route(self, method: str, params: list) -> SubscriptionRoute:
        """
        Subscribe and return the route registered for the issued id.

        Args:
            method: Subscribe method name (e.g. ``programSubscribe``)
            params: Positional parameters

        Returns:
            Started SubscriptionRoute

        Raises:
            ProtocolError: If the server rejected the subscription
            TransportError: On transport failure or ack timeout
        """
        route = SubscriptionRoute(self.queue_size, self.backlog_limit)
        try:
            await self._call(method, params, route)
        except asyncio.CancelledError:
            if route.subscription_id is not None:
                self.close_route(route.subscription_id)
            raise

        if self.reporter:
            self.reporter.info(
                f"Subscribed: method={method}, id={route.subscription_id}",
                context="SubscriptionDispatcher",
                verbose_level=2,
            )
        return route

    def close_route(self, subscription_id: int) -> None:
        """
        Remove a route locally; later notifications for the id are dropped.

        Args:
            subscription_id: Server-issued subscription id
        """
        route = self._routes.pop(subscription_id, None)
        if route is not None:
            route.close()
            if self.reporter:
                self.reporter.info(
                    f"Route closed: id={subscription_id}",
                    context="SubscriptionDispatcher",
                    verbose_level=2,
                )

    async def _call(
        self, method: str, params: list, route: Optional[SubscriptionRoute]
    ) -> Any:
        self._ensure_usable()

        request_id = next(self._request_ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = _PendingRequest(method=method, future=future, route=route)

        try:
            await self.transport.send(
                {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
            )
            return await asyncio.wait_for(future, timeout=self.ack_timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"No response to {method} within {self.ack_timeout}s",
                details={"method": method, "request_id": request_id},
            ) from e
        finally:
            self._pending.pop(request_id, None)

    # ================================================================
    # Reader
    # ================================================================

    async def _read_loop(self) -> None:
        try:
            while True:
                message = await self.transport.receive()
                self._dispatch(message)
        except TransportError as e:
            if not self._closed:
                self._fail(e)
        except Exception as e:
            if not self._closed:
                error = TransportError(
                    f"Subscription reader failed: {type(e).__name__}: {e}"
                )
                error.__cause__ = e
                self._fail(error)

    def _dispatch(self, message: Dict[str, Any]) -> None:
        if isinstance(message.get("id"), int) and ("result" in message or "error" in message):
            self._handle_response(message)
            return

        params = message.get("params")
        if isinstance(params, dict) and isinstance(params.get("subscription"), int):
            self._handle_notification(message.get("method"), params)
            return

        if self.reporter:
            self.reporter.warning(
                f"Ignoring unrecognized message: {message!r}",
                context="SubscriptionDispatcher",
            )

    def _handle_response(self, message: Dict[str, Any]) -> None:
        pending = self._pending.get(message["id"])
        if pending is None or pending.future.done():
            if self.reporter:
                self.reporter.warning(
                    f"Response for unknown request id {message['id']!r}",
                    context="SubscriptionDispatcher",
                )
            return

        if "error" in message:
            try:
                error = ProtocolError.from_error_object(message["error"], pending.method)
            except TransportError as e:
                pending.future.set_exception(e)
                return
            pending.future.set_exception(error)
            return

        result = message["result"]
        route = pending.route
        if route is not None:
            if isinstance(result, bool) or not isinstance(result, int):
                pending.future.set_exception(
                    TransportError(f"Subscribe ack is not an id: {result!r}")
                )
                return
            if result in self._routes:
                pending.future.set_exception(
                    TransportError(f"Server reused active subscription id {result}")
                )
                return
            self._routes[result] = route
            route.start(result)

        pending.future.set_result(result)

    def _handle_notification(self, method: Optional[str], params: Dict[str, Any]) -> None:
        subscription_id = params["subscription"]
        route = self._routes.get(subscription_id)
        if route is None:
            # Late delivery after local cancellation
            if self.reporter:
                self.reporter.debug(
                    f"Dropping {method} for inactive subscription {subscription_id}",
                    context="SubscriptionDispatcher",
                )
            return

        route.push(params.get("result"))

        if route.overflowing:
            self._routes.pop(subscription_id)
            route.overflow(
                SubscriptionError(
                    f"Subscription {subscription_id} consumer fell more than "
                    f"{route.backlog_limit} notifications behind",
                    subscription_id=subscription_id,
                )
            )
            if self.reporter:
                self.reporter.error(
                    f"Backlog limit reached, failing subscription {subscription_id}",
                    context="SubscriptionDispatcher",
                )
            return

        if self.reporter and route.backlog_size > self.queue_size:
            self.reporter.warning(
                f"Subscription {subscription_id} consumer is behind "
                f"(backlog={route.backlog_size})",
                context="SubscriptionDispatcher",
                verbose_level=2,
            )

    def _fail(self, error: TransportError) -> None:
        self._failure = error
        if self.reporter:
            self.reporter.error(
                f"Transport failed, terminating {len(self._routes)} subscription(s): "
                f"{error.message}",
                context="SubscriptionDispatcher",
            )

        self._fail_pending(error)

        for subscription_id, route in self._routes.items():
            terminal = SubscriptionError(
                f"Subscription {subscription_id} terminated by transport failure: "
                f"{error.message}",
                subscription_id=subscription_id,
            )
            terminal.__cause__ = error
            route.fail(terminal)
        self._routes.clear()

    def _fail_pending(self, error: TransportError) -> None:
        for pending in self._pending.values():
            if not pending.future.done():
                pending.future.set_exception(error)

"""
Subscription channel - one typed notification sequence.

State machine:
    PENDING --ack--> SUBSCRIBED --unsubscribe--> UNSUBSCRIBING --> CLOSED
    PENDING --error--> CLOSED
    SUBSCRIBED --transport failure--> CLOSED (error delivered once)

Local cancellation happens before the unsubscribe request is sent, so no
notification is yielded once ``unsubscribe`` has been called.
"""

from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from veilleur.domain.exceptions import SubscriptionError, VeilleurException
from veilleur.infrastructure.subscriptions.dispatcher import (
    CLOSED,
    SubscriptionDispatcher,
    SubscriptionRoute,
    Terminal,
)
from veilleur.reporter import SystemReporter

T = TypeVar("T")


class SubscriptionState(str, Enum):
    """Lifecycle state of a subscription channel."""

    PENDING = "pending"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBING = "unsubscribing"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


class SubscriptionChannel(Generic[T]):
    """
    Async iterator over decoded notifications of one subscription.

    Iteration ends normally after ``unsubscribe``; it raises
    SubscriptionError exactly once when the subscription is terminated by
    a failure, then ends.

    Example:
        async with channel:
            async for envelope in channel:
                print(envelope.slot, envelope.value.lamports)
    """

    def __init__(
        self,
        dispatcher: SubscriptionDispatcher,
        subscribe_method: str,
        unsubscribe_method: str,
        params: list,
        decode: Callable[[Any], T],
        reporter: Optional[SystemReporter] = None,
    ):
        """
        Initialize channel (no request is sent until ``subscribe``).

        Args:
            dispatcher: Started dispatcher that owns the transport
            subscribe_method: e.g. ``accountSubscribe``
            unsubscribe_method: e.g. ``accountUnsubscribe``
            params: Subscribe parameters
            decode: Converts a raw notification result into ``T``
            reporter: Optional SystemReporter
        """
        self.dispatcher = dispatcher
        self.subscribe_method = subscribe_method
        self.unsubscribe_method = unsubscribe_method
        self.params = params
        self.reporter = reporter

        self._decode = decode
        self._route: Optional[SubscriptionRoute] = None
        self._state = SubscriptionState.PENDING
        self.error: Optional[VeilleurException] = None

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def subscription_id(self) -> Optional[int]:
        """Server-issued id once subscribed."""
        return self._route.subscription_id if self._route else None

    def __repr__(self) -> str:
        return (
            f"SubscriptionChannel(method={self.subscribe_method}, "
            f"id={self.subscription_id}, state={self._state})"
        )

    # ================================================================
    # Lifecycle
    # ================================================================

    async def subscribe(self) -> "SubscriptionChannel[T]":
        """
        Send the subscribe request and wait for the acknowledgement.

        Returns:
            self

        Raises:
            SubscriptionError: If called twice
            ProtocolError: If the server rejected the subscription
            TransportError: On transport failure or ack timeout
        """
        if self._state is not SubscriptionState.PENDING or self._route is not None:
            raise SubscriptionError(
                f"Channel already used (state={self._state})",
                subscription_id=self.subscription_id,
            )

        try:
            self._route = await self.dispatcher.open_route(
                self.subscribe_method, self.params
            )
        except VeilleurException as e:
            self._state = SubscriptionState.CLOSED
            self.error = e
            raise

        self._state = SubscriptionState.SUBSCRIBED
        return self

    async def unsubscribe(self) -> bool:
        """
        Stop delivery and cancel the subscription on the server.

        Delivery stops locally before the request goes out; the channel
        ends CLOSED whatever the server answers.

        Returns:
            Server acknowledgement, False if the channel was not active

        Raises:
            ProtocolError: If the server rejected the unsubscribe
            TransportError: On transport failure
        """
        if self._state is not SubscriptionState.SUBSCRIBED or self._route is None:
            self._state = SubscriptionState.CLOSED
            return False

        self._state = SubscriptionState.UNSUBSCRIBING
        subscription_id = self._route.subscription_id
        self.dispatcher.close_route(subscription_id)

        try:
            acknowledged = await self.dispatcher.request(
                self.unsubscribe_method, [subscription_id]
            )
        finally:
            self._state = SubscriptionState.CLOSED

        if self.reporter:
            self.reporter.info(
                f"Unsubscribed: id={subscription_id}, ack={acknowledged}",
                context="SubscriptionChannel",
                verbose_level=2,
            )
        return bool(acknowledged)

    async def aclose(self) -> None:
        """Unsubscribe if still active."""
        if self._state is SubscriptionState.SUBSCRIBED:
            await self.unsubscribe()

    async def __aenter__(self) -> "SubscriptionChannel[T]":
        if self._state is SubscriptionState.PENDING:
            await self.subscribe()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ================================================================
    # Iteration
    # ================================================================

    def __aiter__(self) -> "SubscriptionChannel[T]":
        return self

    async def __anext__(self) -> T:
        if self._state is SubscriptionState.PENDING:
            raise SubscriptionError("Channel is not subscribed")
        if self._state is not SubscriptionState.SUBSCRIBED or self._route is None:
            raise StopAsyncIteration

        item = await self._route.queue.get()

        if item is CLOSED:
            if self._state is SubscriptionState.SUBSCRIBED:
                self._state = SubscriptionState.CLOSED
            raise StopAsyncIteration

        # unsubscribe may have run while waiting
        if self._state is not SubscriptionState.SUBSCRIBED:
            raise StopAsyncIteration

        if isinstance(item, Terminal):
            if self.dispatcher.usable:
                # Route failed locally; the server subscription is still live
                await self._abort(item.error)
            self._state = SubscriptionState.CLOSED
            self.error = item.error
            raise item.error

        try:
            return self._decode(item)
        except VeilleurException as e:
            await self._abort(e)
            raise SubscriptionError(
                f"Undecodable notification on subscription "
                f"{self.subscription_id}: {e.message}",
                subscription_id=self.subscription_id,
            ) from e

    async def _abort(self, error: VeilleurException) -> None:
        """Close locally and cancel the server subscription."""
        subscription_id = self.subscription_id
        self.error = error
        self._state = SubscriptionState.UNSUBSCRIBING
        self.dispatcher.close_route(subscription_id)
        try:
            await self.dispatcher.request(self.unsubscribe_method, [subscription_id])
        except VeilleurException as e:
            if self.reporter:
                self.reporter.warning(
                    f"Unsubscribe after failure failed: id={subscription_id}: "
                    f"{e.message}",
                    context="SubscriptionChannel",
                )
        finally:
            self._state = SubscriptionState.CLOSED

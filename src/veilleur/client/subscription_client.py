"""
Ledger subscription client - account and program notifications.
"""

from typing import Optional, Sequence, Union

from veilleur.application import CommitmentGate, EncodingResolver, parse_encoding
from veilleur.application.commitment_gate import CommitmentLike
from veilleur.application.encoding_resolver import EncodingLike
from veilleur.config.settings import VeilleurConfig, get_settings
from veilleur.domain.entities import (
    AccountInfo,
    KeyedAccount,
    ResponseEnvelope,
    ResponseEnvelopeBuilder,
)
from veilleur.domain.services.filter_evaluator import FilterEvaluator
from veilleur.domain.value_objects import Address, Filter
from veilleur.infrastructure.subscriptions import (
    SubscriptionChannel,
    SubscriptionDispatcher,
)
from veilleur.infrastructure.transport import (
    SubscriptionTransport,
    TransportContext,
    WebSocketTransport,
)
from veilleur.reporter import SystemReporter

AddressLike = Union[Address, str]


class LedgerSubscriptionClient:
    """
    Push notification client over one connection.

    All channels opened by one client share its dispatcher; closing the
    client ends every channel.

    Example:
        async with LedgerSubscriptionClient.from_settings() as client:
            channel = await client.account_notifications(address, "base64")
            async for envelope in channel:
                print(envelope.slot, envelope.value.lamports)
    """

    def __init__(
        self,
        transport: SubscriptionTransport,
        settings: Optional[VeilleurConfig] = None,
        resolver: Optional[EncodingResolver] = None,
        gate: Optional[CommitmentGate] = None,
        reporter: Optional[SystemReporter] = None,
    ):
        """
        Initialize subscription client.

        Args:
            transport: Push transport (owned by the client after start)
            settings: Configuration (defaults to get_settings())
            resolver: Encoding resolver
            gate: Commitment gate
            reporter: Optional SystemReporter
        """
        self._settings = settings or get_settings()
        self.resolver = resolver or EncodingResolver()
        self.gate = gate or CommitmentGate(self._settings.default_commitment)
        self.reporter = reporter
        self.dispatcher = SubscriptionDispatcher(
            transport,
            queue_size=self._settings.subscription_queue_size,
            ack_timeout=self._settings.timeouts.subscribe_ack,
            reporter=reporter,
            backlog_limit=self._settings.subscription_backlog_limit,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[VeilleurConfig] = None,
        reporter: Optional[SystemReporter] = None,
    ) -> "LedgerSubscriptionClient":
        """Build a client with a WebSocket transport from configuration."""
        settings = settings or get_settings()
        transport = WebSocketTransport(
            settings.ws_url,
            context=TransportContext(request_timeout=settings.timeouts.rpc_call),
        )
        reporter = reporter or SystemReporter.from_settings(settings)
        return cls(transport, settings=settings, reporter=reporter)

    async def start(self) -> None:
        """Connect and start dispatching."""
        await self.dispatcher.start()

    async def close(self) -> None:
        """End every channel and close the connection."""
        await self.dispatcher.close()

    async def __aenter__(self) -> "LedgerSubscriptionClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ================================================================
    # Subscriptions
    # ================================================================

    async def account_notifications(
        self,
        address: AddressLike,
        encoding: Optional[EncodingLike] = None,
        commitment: Optional[CommitmentLike] = None,
    ) -> SubscriptionChannel[ResponseEnvelope[AccountInfo]]:
        """
        Subscribe to changes of one account.

        Args:
            address: Account address
            encoding: Data encoding (base58 when None)
            commitment: Notification commitment

        Returns:
            Subscribed channel yielding envelopes of AccountInfo

        Raises:
            ValidationError: Malformed address or options
            ProtocolError: Server rejected the subscription
            TransportError: Transport failure
        """
        address = Address.coerce(address)
        requested = parse_encoding(encoding)
        config = self.gate.resolve_snapshot(commitment).to_config()
        if requested is not None:
            config["encoding"] = requested.value

        channel = SubscriptionChannel(
            self.dispatcher,
            "accountSubscribe",
            "accountUnsubscribe",
            [str(address), config],
            decode=lambda result: ResponseEnvelopeBuilder.unwrap(
                result, lambda value: self.resolver.decode_account(requested, value)
            ),
            reporter=self.reporter,
        )
        return await channel.subscribe()

    async def program_notifications(
        self,
        program_id: AddressLike,
        encoding: Optional[EncodingLike] = None,
        commitment: Optional[CommitmentLike] = None,
        filters: Optional[Sequence[Filter]] = None,
    ) -> SubscriptionChannel[ResponseEnvelope[KeyedAccount]]:
        """
        Subscribe to changes of accounts owned by a program.

        Args:
            program_id: Owning program address
            encoding: Data encoding (base58 when None)
            commitment: Notification commitment
            filters: Up to four memcmp/dataSize filters

        Returns:
            Subscribed channel yielding envelopes of KeyedAccount
        """
        program_id = Address.coerce(program_id)
        filters = FilterEvaluator.validate(filters)
        requested = parse_encoding(encoding)
        config = self.gate.resolve_snapshot(commitment).to_config()
        if requested is not None:
            config["encoding"] = requested.value
        if filters:
            config["filters"] = FilterEvaluator.to_wire(filters)

        channel = SubscriptionChannel(
            self.dispatcher,
            "programSubscribe",
            "programUnsubscribe",
            [str(program_id), config],
            decode=lambda result: ResponseEnvelopeBuilder.unwrap(
                result,
                lambda value: self.resolver.decode_keyed_account(requested, value),
            ),
            reporter=self.reporter,
        )
        return await channel.subscribe()

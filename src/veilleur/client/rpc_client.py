"""
Ledger RPC client - typed account queries over request/response JSON-RPC.

Every query validates its inputs before touching the network, resolves
the snapshot through the CommitmentGate and returns a ResponseEnvelope
carrying the slot the node answered from.
"""

import itertools
from typing import Any, Dict, List, Optional, Sequence, Union

from veilleur.application import CommitmentGate, EncodingResolver, parse_encoding
from veilleur.application.commitment_gate import CommitmentLike
from veilleur.application.encoding_resolver import EncodingLike
from veilleur.config.settings import VeilleurConfig, get_settings
from veilleur.domain.entities import (
    AccountInfo,
    KeyedAccount,
    ResponseEnvelope,
    ResponseEnvelopeBuilder,
    TokenAmount,
    parse_u64,
)
from veilleur.domain.exceptions import ProtocolError, TransportError, ValidationError
from veilleur.domain.services.filter_evaluator import FilterEvaluator
from veilleur.domain.value_objects import Address, Filter
from veilleur.infrastructure.resilience import RetryConfig
from veilleur.infrastructure.transport import (
    HttpRpcTransport,
    RpcTransport,
    TransportContext,
)
from veilleur.reporter import SystemReporter

AddressLike = Union[Address, str]

MAX_MULTIPLE_ACCOUNTS = 100


class LedgerRpcClient:
    """
    Account query client.

    Example:
        async with LedgerRpcClient.from_settings() as client:
            supply = await client.get_token_supply(mint)
            print(supply.slot, supply.value.ui_amount_string)
    """

    def __init__(
        self,
        transport: RpcTransport,
        settings: Optional[VeilleurConfig] = None,
        resolver: Optional[EncodingResolver] = None,
        gate: Optional[CommitmentGate] = None,
        reporter: Optional[SystemReporter] = None,
    ):
        """
        Initialize RPC client.

        Args:
            transport: Request/response transport
            settings: Configuration (defaults to get_settings())
            resolver: Encoding resolver (defaults to built-in decoders)
            gate: Commitment gate (defaults to configured commitment)
            reporter: Optional SystemReporter
        """
        self._settings = settings or get_settings()
        self.transport = transport
        self.resolver = resolver or EncodingResolver()
        self.gate = gate or CommitmentGate(self._settings.default_commitment)
        self.reporter = reporter
        self._request_ids = itertools.count(1)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[VeilleurConfig] = None,
        reporter: Optional[SystemReporter] = None,
    ) -> "LedgerRpcClient":
        """
        Build a client with an HTTP transport from configuration.

        Args:
            settings: Configuration (defaults to get_settings())
            reporter: Reporter (built from the logging settings when None)

        Returns:
            LedgerRpcClient
        """
        settings = settings or get_settings()
        transport = HttpRpcTransport(
            settings.rpc_url,
            context=TransportContext(request_timeout=settings.timeouts.rpc_call),
            retry_config=RetryConfig.from_settings(settings.retry),
        )
        reporter = reporter or SystemReporter.from_settings(settings)
        return cls(transport, settings=settings, reporter=reporter)

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    async def __aenter__(self) -> "LedgerRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ================================================================
    # Request plumbing
    # ================================================================

    async def _call(self, method: str, params: list) -> Any:
        """
        Send one request and return its ``result``.

        Raises:
            ProtocolError: If the response carries an error object
            TransportError: On transport failure or malformed response
        """
        request_id = next(self._request_ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params,
        }

        if self.reporter:
            self.reporter.debug(
                f"-> {method} id={request_id}", context="LedgerRpcClient"
            )

        response = await self.transport.send(payload)

        if response.get("id") != request_id:
            raise TransportError(
                f"Response id {response.get('id')!r} does not match request {request_id}",
                details={"method": method},
            )

        if "error" in response:
            error = ProtocolError.from_error_object(response["error"], method)
            if self.reporter:
                self.reporter.warning(
                    f"{method} failed: {error.message} ({error.kind})",
                    context="LedgerRpcClient",
                )
            raise error

        if "result" not in response:
            raise TransportError(
                f"Response has neither result nor error: {response!r}",
                details={"method": method},
            )
        return response["result"]

    def _config(
        self,
        commitment: Optional[CommitmentLike],
        min_context_slot: Optional[int] = None,
        encoding: Optional[EncodingLike] = None,
    ) -> Dict[str, Any]:
        config = self.gate.resolve_snapshot(commitment, min_context_slot).to_config()
        requested = parse_encoding(encoding)
        if requested is not None:
            config["encoding"] = requested.value
        return config

    # ================================================================
    # Queries
    # ================================================================

    async def get_account_info(
        self,
        address: AddressLike,
        encoding: Optional[EncodingLike] = None,
        commitment: Optional[CommitmentLike] = None,
        min_context_slot: Optional[int] = None,
    ) -> ResponseEnvelope[Optional[AccountInfo]]:
        """
        Fetch one account.

        Args:
            address: Account address
            encoding: Data encoding (base58 when None)
            commitment: Snapshot commitment (configured default when None)
            min_context_slot: Lowest acceptable slot

        Returns:
            Envelope holding the account, or None if it does not exist

        Raises:
            ValidationError: Malformed address or options
            ProtocolError: Node rejected the request
            UnsupportedEncodingError: Data not in the requested encoding
            TransportError: Transport failure
        """
        address = Address.coerce(address)
        config = self._config(commitment, min_context_slot, encoding)

        result = await self._call("getAccountInfo", [str(address), config])
        return ResponseEnvelopeBuilder.unwrap(
            result, lambda value: self.resolver.decode_optional_account(encoding, value)
        )

    async def get_multiple_accounts(
        self,
        addresses: Sequence[AddressLike],
        encoding: Optional[EncodingLike] = None,
        commitment: Optional[CommitmentLike] = None,
        min_context_slot: Optional[int] = None,
    ) -> ResponseEnvelope[List[Optional[AccountInfo]]]:
        """
        Fetch several accounts from one snapshot.

        Args:
            addresses: Account addresses (1 to 100)
            encoding: Data encoding (base58 when None)
            commitment: Snapshot commitment
            min_context_slot: Lowest acceptable slot

        Returns:
            Envelope holding one entry per address, in request order
        """
        addresses = [Address.coerce(address) for address in addresses]
        if not 1 <= len(addresses) <= MAX_MULTIPLE_ACCOUNTS:
            raise ValidationError(
                f"Expected 1 to {MAX_MULTIPLE_ACCOUNTS} addresses, got {len(addresses)}"
            )
        config = self._config(commitment, min_context_slot, encoding)

        result = await self._call(
            "getMultipleAccounts", [[str(address) for address in addresses], config]
        )

        def decode_list(value: Any) -> List[Optional[AccountInfo]]:
            if not isinstance(value, list) or len(value) != len(addresses):
                raise TransportError(
                    f"Expected {len(addresses)} accounts, got {value!r}"
                )
            return [self.resolver.decode_optional_account(encoding, item) for item in value]

        return ResponseEnvelopeBuilder.unwrap(result, decode_list)

    async def get_balance(
        self,
        address: AddressLike,
        commitment: Optional[CommitmentLike] = None,
        min_context_slot: Optional[int] = None,
    ) -> ResponseEnvelope[int]:
        """Fetch the lamport balance of an account."""
        address = Address.coerce(address)
        config = self._config(commitment, min_context_slot)

        result = await self._call("getBalance", [str(address), config])
        return ResponseEnvelopeBuilder.unwrap(
            result, lambda value: parse_u64(value, "balance")
        )

    async def get_token_supply(
        self,
        mint: AddressLike,
        commitment: Optional[CommitmentLike] = None,
    ) -> ResponseEnvelope[TokenAmount]:
        """
        Fetch the total supply of a token mint.

        The display values are recomputed from the exact amount and
        decimals, not taken from the node.

        Args:
            mint: Mint account address
            commitment: Snapshot commitment

        Returns:
            Envelope holding the TokenAmount

        Raises:
            ProtocolError: INVALID_PARAMS when the account is not a mint
        """
        mint = Address.coerce(mint)
        config = self._config(commitment)

        result = await self._call("getTokenSupply", [str(mint), config])
        return ResponseEnvelopeBuilder.unwrap(result, self.resolver.decode_token_amount)

    async def get_token_account_balance(
        self,
        account: AddressLike,
        commitment: Optional[CommitmentLike] = None,
    ) -> ResponseEnvelope[TokenAmount]:
        """Fetch the balance of a token account."""
        account = Address.coerce(account)
        config = self._config(commitment)

        result = await self._call("getTokenAccountBalance", [str(account), config])
        return ResponseEnvelopeBuilder.unwrap(result, self.resolver.decode_token_amount)

    async def get_program_accounts(
        self,
        program_id: AddressLike,
        encoding: Optional[EncodingLike] = None,
        commitment: Optional[CommitmentLike] = None,
        filters: Optional[Sequence[Filter]] = None,
        min_context_slot: Optional[int] = None,
    ) -> ResponseEnvelope[List[KeyedAccount]]:
        """
        Fetch accounts owned by a program, filtered on the node.

        Args:
            program_id: Owning program address
            encoding: Data encoding (base58 when None)
            commitment: Snapshot commitment
            filters: Up to four memcmp/dataSize filters, all must match
            min_context_slot: Lowest acceptable slot

        Returns:
            Envelope holding the matching keyed accounts

        Raises:
            ValidationError: Malformed address, options or filters
        """
        program_id = Address.coerce(program_id)
        filters = FilterEvaluator.validate(filters)
        config = self._config(commitment, min_context_slot, encoding)
        config["withContext"] = True
        if filters:
            config["filters"] = FilterEvaluator.to_wire(filters)

        result = await self._call("getProgramAccounts", [str(program_id), config])

        def decode_list(value: Any) -> List[KeyedAccount]:
            if not isinstance(value, list):
                raise TransportError(f"Program accounts is not a list: {value!r}")
            return [self.resolver.decode_keyed_account(encoding, item) for item in value]

        return ResponseEnvelopeBuilder.unwrap(result, decode_list)

    async def get_slot(
        self,
        commitment: Optional[CommitmentLike] = None,
        min_context_slot: Optional[int] = None,
    ) -> int:
        """Fetch the slot the node has reached at the given commitment."""
        config = self._config(commitment, min_context_slot)
        result = await self._call("getSlot", [config])
        return parse_u64(result, "slot")

"""
Response envelopes - results tagged with the slot they were computed at.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from veilleur.domain.exceptions import TransportError
from veilleur.domain.entities.account import parse_u64

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class RpcContext:
    """Snapshot context of a response."""

    slot: int
    api_version: Optional[str] = None


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """
    Query result or notification payload with its snapshot context.

    Callers reconcile ordering between independent calls by comparing
    ``context.slot``.
    """

    context: RpcContext
    value: T

    @property
    def slot(self) -> int:
        """Slot of the observed snapshot."""
        return self.context.slot

    def map(self, func: Callable[[T], U]) -> "ResponseEnvelope[U]":
        """Apply ``func`` to the value, keeping the context."""
        return ResponseEnvelope(context=self.context, value=func(self.value))


class ResponseEnvelopeBuilder:
    """Applies the envelope shape uniformly to queries and notifications."""

    @staticmethod
    def wrap(slot: int, value: T, api_version: Optional[str] = None) -> ResponseEnvelope[T]:
        """
        Wrap a value with its slot.

        Args:
            slot: Snapshot slot
            value: Result value
            api_version: Node API version, when reported

        Returns:
            ResponseEnvelope
        """
        return ResponseEnvelope(
            context=RpcContext(slot=slot, api_version=api_version),
            value=value,
        )

    @classmethod
    def unwrap(
        cls,
        result: Any,
        decode_value: Callable[[Any], T],
    ) -> ResponseEnvelope[T]:
        """
        Extract ``context.slot`` and ``value`` from a wire result.

        Args:
            result: Wire ``{"context": {"slot": n}, "value": ...}`` object
            decode_value: Converter applied to the raw value

        Returns:
            ResponseEnvelope holding the decoded value

        Raises:
            TransportError: If the result does not have envelope shape
        """
        if not isinstance(result, dict) or "value" not in result:
            raise TransportError(f"Response is not an envelope: {result!r}")

        context = result.get("context")
        if not isinstance(context, dict) or "slot" not in context:
            raise TransportError(f"Response context missing slot: {context!r}")

        return cls.wrap(
            parse_u64(context["slot"], "context.slot"),
            decode_value(result["value"]),
            api_version=context.get("apiVersion"),
        )

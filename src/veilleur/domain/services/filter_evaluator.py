"""
Filter evaluation and client-side filter validation.
"""

from typing import Any, Dict, List, Optional, Sequence

from veilleur.domain.exceptions import ValidationError
from veilleur.domain.value_objects.filters import (
    DataSizeFilter,
    Filter,
    MemcmpBase58Filter,
    MemcmpBase64Filter,
    filter_from_wire,
)

# Limits enforced by the node for getProgramAccounts / programSubscribe
MAX_FILTERS = 4
MAX_MEMCMP_BYTES = 128
MAX_BASE58_MEMCMP_TEXT = 175


class FilterEvaluator:
    """
    Evaluates filter sets against raw account bytes.

    A filter set is an ordered list combined with logical AND. Predicates
    are pure, so evaluation order never changes the result.
    """

    @staticmethod
    def matches(filters: Sequence[Filter], data: bytes) -> bool:
        """
        Check whether account data satisfies every filter.

        Args:
            filters: Ordered filter list (empty list always matches)
            data: Raw account bytes

        Returns:
            True if all filters match
        """
        for account_filter in filters:
            if not account_filter.matches(data):
                return False
        return True

    @staticmethod
    def validate(filters: Optional[Sequence[Filter]]) -> List[Filter]:
        """
        Validate a filter configuration before it is sent.

        Args:
            filters: Filter list or None

        Returns:
            Filters as a list (empty when None)

        Raises:
            ValidationError: If the configuration would be rejected
        """
        if filters is None:
            return []

        filters = list(filters)
        if len(filters) > MAX_FILTERS:
            raise ValidationError(
                f"Too many filters: {len(filters)} (max {MAX_FILTERS})",
                details={"count": len(filters)},
            )

        for account_filter in filters:
            if isinstance(account_filter, (MemcmpBase58Filter, MemcmpBase64Filter)):
                if len(account_filter.decoded) > MAX_MEMCMP_BYTES:
                    raise ValidationError(
                        f"Memcmp bytes too long: {len(account_filter.decoded)} "
                        f"(max {MAX_MEMCMP_BYTES})"
                    )
                if (
                    isinstance(account_filter, MemcmpBase58Filter)
                    and len(account_filter.bytes) > MAX_BASE58_MEMCMP_TEXT
                ):
                    raise ValidationError(
                        f"Base58 memcmp text too long: {len(account_filter.bytes)} "
                        f"(max {MAX_BASE58_MEMCMP_TEXT})"
                    )
            elif not isinstance(account_filter, DataSizeFilter):
                raise ValidationError(
                    f"Unknown filter type: {type(account_filter).__name__}"
                )

        return filters

    @staticmethod
    def to_wire(filters: Sequence[Filter]) -> List[Dict[str, Any]]:
        """Render a filter list as request objects."""
        return [account_filter.to_wire() for account_filter in filters]

    @staticmethod
    def from_wire(objects: Sequence[Dict[str, Any]]) -> List[Filter]:
        """Parse request filter objects."""
        return [filter_from_wire(obj) for obj in objects]

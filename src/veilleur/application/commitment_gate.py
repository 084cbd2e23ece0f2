"""
Commitment resolution for outgoing requests.

Maps a requested finality level onto the snapshot token that annotates a
request. No I/O happens here and nothing is reconciled across calls: each
response carries its own slot for callers to compare afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from veilleur.domain.exceptions import ValidationError
from veilleur.domain.value_objects.commitment import CommitmentLevel

CommitmentLike = Union[CommitmentLevel, str]


@dataclass(frozen=True)
class SnapshotToken:
    """Snapshot selector sent with a request."""

    commitment: CommitmentLevel
    min_context_slot: Optional[int] = None

    def to_config(self) -> Dict[str, Any]:
        """Render as request config entries."""
        config: Dict[str, Any] = {"commitment": self.commitment.value}
        if self.min_context_slot is not None:
            config["minContextSlot"] = self.min_context_slot
        return config


def parse_commitment(value: CommitmentLike) -> CommitmentLevel:
    """
    Parse a commitment level.

    Args:
        value: CommitmentLevel or its name

    Returns:
        CommitmentLevel

    Raises:
        ValidationError: If value names no known level
    """
    if isinstance(value, CommitmentLevel):
        return value
    try:
        return CommitmentLevel(str(value).lower())
    except ValueError as e:
        allowed = [level.value for level in CommitmentLevel]
        raise ValidationError(
            f"Invalid commitment {value!r}. Must be one of: {allowed}"
        ) from e


class CommitmentGate:
    """
    Resolves the snapshot a query must observe.

    The default commitment is fixed at construction (from configuration)
    and applied whenever a call omits one.
    """

    def __init__(self, default_commitment: CommitmentLike = CommitmentLevel.FINALIZED):
        """
        Initialize commitment gate.

        Args:
            default_commitment: Level used when a call specifies none
        """
        self.default_commitment = parse_commitment(default_commitment)

    def resolve_snapshot(
        self,
        commitment: Optional[CommitmentLike] = None,
        min_context_slot: Optional[int] = None,
    ) -> SnapshotToken:
        """
        Resolve the snapshot token for one call.

        Args:
            commitment: Requested level (default applies when None)
            min_context_slot: Lowest slot the node may answer from

        Returns:
            SnapshotToken

        Raises:
            ValidationError: On an unknown level or a bad slot
        """
        level = (
            self.default_commitment
            if commitment is None
            else parse_commitment(commitment)
        )

        if min_context_slot is not None and (
            isinstance(min_context_slot, bool)
            or not isinstance(min_context_slot, int)
            or min_context_slot < 0
        ):
            raise ValidationError(
                f"min_context_slot must be a non-negative integer: {min_context_slot!r}"
            )

        return SnapshotToken(commitment=level, min_context_slot=min_context_slot)

    @staticmethod
    def is_consistent(observations: Mapping[CommitmentLevel, int]) -> bool:
        """
        Check slots observed in one batch against the commitment order.

        A more certain level may never have observed a newer slot than a
        fresher level: finalized <= confirmed <= processed.

        Args:
            observations: Slot observed per commitment level

        Returns:
            True if the batch respects the order
        """
        ordered = sorted(observations.items(), key=lambda item: item[0].rank)
        for (_, fresher_slot), (_, staler_slot) in zip(ordered, ordered[1:]):
            if staler_slot > fresher_slot:
                return False
        return True

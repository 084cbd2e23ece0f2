"""
Commitment level enum.
"""

from enum import Enum


class CommitmentLevel(str, Enum):
    """
    Finality requested for a ledger read.

    Ordered by increasing certainty, which is also non-decreasing
    staleness: ``processed`` is the freshest and least certain,
    ``finalized`` the most certain and most lagging.
    """

    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @property
    def rank(self) -> int:
        """Certainty rank (0 = processed)."""
        return _RANKS[self]

    def is_fresher_than(self, other: "CommitmentLevel") -> bool:
        """Check if this level observes a more recent snapshot than ``other``."""
        return self.rank < other.rank

    def __lt__(self, other):
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        """String representation."""
        return self.value


_RANKS = {
    CommitmentLevel.PROCESSED: 0,
    CommitmentLevel.CONFIRMED: 1,
    CommitmentLevel.FINALIZED: 2,
}

"""
Domain value objects.
"""

from veilleur.domain.value_objects.address import Address
from veilleur.domain.value_objects.commitment import CommitmentLevel
from veilleur.domain.value_objects.encoding import AccountEncoding
from veilleur.domain.value_objects.filters import (
    DataSizeFilter,
    Filter,
    MemcmpBase58Filter,
    MemcmpBase64Filter,
    filter_from_wire,
)

__all__ = [
    "Address",
    "CommitmentLevel",
    "AccountEncoding",
    "Filter",
    "MemcmpBase58Filter",
    "MemcmpBase64Filter",
    "DataSizeFilter",
    "filter_from_wire",
]

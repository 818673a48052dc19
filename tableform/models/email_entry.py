from __future__ import annotations

import uuid
from dataclasses import dataclass

"""EmailEntry model: one slot in the recipient list."""

__all__ = [
    "EmailEntry",
    "normalize_address",
]


def normalize_address(address: str) -> str:
    """Comparison key for duplicate detection (trimmed, lower-cased)."""
    return address.strip().lower()


@dataclass(frozen=True)
class EmailEntry:
    """Recipient slot. The address keeps the case the user typed."""
    id: str
    address: str = ""

    @staticmethod
    def create(address: str = "") -> EmailEntry:
        return EmailEntry(id=str(uuid.uuid4()), address=address)

    @property
    def key(self) -> str:
        return normalize_address(self.address)

    @property
    def is_blank(self) -> bool:
        return self.address.strip() == ""

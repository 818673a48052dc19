from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

"""RecipientAssignment model: primary / CC email ids bound to one table."""

__all__ = [
    "Role",
    "RecipientAssignment",
]


class Role(Enum):
    PRIMARY = "primary"
    CC = "cc"

    @property
    def other(self) -> Role:
        return Role.CC if self is Role.PRIMARY else Role.PRIMARY


@dataclass(frozen=True)
class RecipientAssignment:
    """Two disjoint id sets for one table.

    ``primary_order`` / ``cc_order`` keep the order ids were assigned in so
    that resolved address lists are stable; the frozensets are views over
    them.
    """
    table_id: str
    primary_order: tuple[str, ...] = field(default_factory=tuple)
    cc_order: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        overlap = set(self.primary_order) & set(self.cc_order)
        if overlap:
            raise ValueError(f"email ids in both primary and cc: {sorted(overlap)}")

    @property
    def primary(self) -> frozenset[str]:
        return frozenset(self.primary_order)

    @property
    def cc(self) -> frozenset[str]:
        return frozenset(self.cc_order)

    def ids_for(self, role: Role) -> tuple[str, ...]:
        return self.primary_order if role is Role.PRIMARY else self.cc_order

    @staticmethod
    def build(table_id: str, primary_ids: Iterable[str], cc_ids: Iterable[str]) -> RecipientAssignment:
        """De-duplicate both lists; an id present in both stays primary only."""
        primary = _dedupe(primary_ids)
        taken = set(primary)
        cc = tuple(i for i in _dedupe(cc_ids) if i not in taken)
        return RecipientAssignment(table_id=table_id, primary_order=primary, cc_order=cc)

    def with_role(self, email_id: str, role: Role) -> RecipientAssignment:
        """Move (or add) ``email_id`` into ``role``; it leaves the other role."""
        primary = tuple(i for i in self.primary_order if i != email_id)
        cc = tuple(i for i in self.cc_order if i != email_id)
        if role is Role.PRIMARY:
            # 既に primary の場合は位置を維持
            primary = self.primary_order if email_id in self.primary_order else primary + (email_id,)
        else:
            cc = self.cc_order if email_id in self.cc_order else cc + (email_id,)
        return RecipientAssignment(table_id=self.table_id, primary_order=primary, cc_order=cc)

    def without(self, email_id: str, role: Role | None = None) -> RecipientAssignment:
        """Drop ``email_id`` from ``role`` (from both when role is None)."""
        primary = self.primary_order
        cc = self.cc_order
        if role in (None, Role.PRIMARY):
            primary = tuple(i for i in primary if i != email_id)
        if role in (None, Role.CC):
            cc = tuple(i for i in cc if i != email_id)
        return RecipientAssignment(table_id=self.table_id, primary_order=primary, cc_order=cc)


def _dedupe(ids: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(ids))

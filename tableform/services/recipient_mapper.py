from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from ..errors import DuplicateEmailError, EmailNotFoundError, ValidationError
from ..models.assignment import RecipientAssignment, Role
from ..models.email_entry import EmailEntry, normalize_address

"""Recipient mapper service.

Owns the recipient email list and, per table, the two disjoint role sets
(primary / CC). Invariants kept after every operation:

- at least one EmailEntry exists
- no two non-empty addresses are equal after trim + lower-case
- for every table, primary and CC share no email id
- assignments only reference existing email ids
"""

logger = logging.getLogger(__name__)

__all__ = [
    "RecipientMapper",
]


class RecipientMapper:
    def __init__(self) -> None:
        first = EmailEntry.create()
        self._emails: dict[str, EmailEntry] = {first.id: first}
        self._assignments: dict[str, RecipientAssignment] = {}

    # ------------------------------------------------------------------
    # emails
    # ------------------------------------------------------------------
    def emails(self) -> list[EmailEntry]:
        return list(self._emails.values())

    def get_email(self, email_id: str) -> EmailEntry:
        try:
            return self._emails[email_id]
        except KeyError:
            raise EmailNotFoundError(f"email not found: {email_id}") from None

    def add_email(self, address: str = "") -> EmailEntry:
        self._check_duplicate(None, address)
        entry = EmailEntry.create(address)
        self._emails[entry.id] = entry
        return entry

    def update_email(self, email_id: str, address: str) -> EmailEntry:
        """Change an address; duplicates are rejected and nothing changes."""
        entry = self.get_email(email_id)
        self._check_duplicate(email_id, address)
        updated = replace(entry, address=address)
        self._emails[email_id] = updated
        return updated

    def remove_email(self, email_id: str) -> bool:
        """Remove an entry and prune it from every assignment.

        Returns False (and logs a warning) when it is the last entry.
        """
        self.get_email(email_id)
        if len(self._emails) <= 1:
            logger.warning("cannot remove the last email entry")
            return False
        del self._emails[email_id]
        for table_id, assignment in self._assignments.items():
            self._assignments[table_id] = assignment.without(email_id)
        return True

    def non_empty_addresses(self) -> list[str]:
        return [e.address for e in self._emails.values() if not e.is_blank]

    def has_non_empty_address(self) -> bool:
        return any(not e.is_blank for e in self._emails.values())

    def resolve_addresses(self, email_ids: Iterable[str]) -> list[str]:
        """Addresses for ``email_ids`` in the given order; blank/unknown ids dropped."""
        out: list[str] = []
        for email_id in email_ids:
            entry = self._emails.get(email_id)
            if entry is None or entry.is_blank:
                continue
            out.append(entry.address)
        return out

    def _check_duplicate(self, email_id: str | None, address: str) -> None:
        key = normalize_address(address)
        if key == "":
            return
        for other in self._emails.values():
            if other.id != email_id and other.key == key:
                raise DuplicateEmailError(
                    "This email address is already added. Duplicate emails are not allowed."
                )

    # ------------------------------------------------------------------
    # assignments
    # ------------------------------------------------------------------
    def assignment(self, table_id: str) -> RecipientAssignment:
        return self._assignments.get(table_id, RecipientAssignment(table_id=table_id))

    def assign(self, table_id: str, email_id: str, role: Role) -> RecipientAssignment:
        """Put ``email_id`` in ``role`` for the table, moving it out of the other role."""
        self._selectable(email_id)
        updated = self.assignment(table_id).with_role(email_id, role)
        self._assignments[table_id] = updated
        return updated

    def unassign(self, table_id: str, email_id: str, role: Role) -> RecipientAssignment:
        if table_id not in self._assignments:
            return self.assignment(table_id)
        updated = self.assignment(table_id).without(email_id, role)
        self._assignments[table_id] = updated
        return updated

    def validate_selection(self, primary_ids: Iterable[str], cc_ids: Iterable[str] = ()) -> None:
        """Raise unless primary is non-empty and every id is a known, non-empty entry."""
        primary_ids = list(primary_ids)
        if not primary_ids:
            raise ValidationError("Please select at least one email address.")
        for email_id in [*primary_ids, *cc_ids]:
            self._selectable(email_id)

    def save_assignment(
        self, table_id: str, primary_ids: Iterable[str], cc_ids: Iterable[str] = ()
    ) -> RecipientAssignment:
        """Replace both role sets at once (primary wins ids listed in both).

        Entries with an empty address cannot be selected; at least one
        primary id must point at a non-empty address.
        """
        primary_ids = list(primary_ids)
        cc_ids = list(cc_ids)
        self.validate_selection(primary_ids, cc_ids)
        updated = RecipientAssignment.build(table_id, primary_ids, cc_ids)
        self._assignments[table_id] = updated
        return updated

    def _selectable(self, email_id: str) -> EmailEntry:
        entry = self.get_email(email_id)
        if entry.is_blank:
            raise ValidationError("Only non-empty email addresses can be selected.")
        return entry

    def drop_table(self, table_id: str) -> None:
        self._assignments.pop(table_id, None)

    def table_ids(self) -> list[str]:
        return list(self._assignments)

from __future__ import annotations

import json
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import SubmissionError

"""Submission payload models.

The workflow webhook receives a multipart form with these parts:

    contractName      plain text
    contractDocument  file part
    emails            JSON list of every non-empty recipient address
    tables            JSON list of TablePayload records
    tableNames        JSON list of table display names (same order as tables)

``data`` inside each table record is always horizontal (header row first),
whatever view mode the table was left in.
"""

__all__ = [
    "DocumentRef",
    "TablePayload",
    "SubmissionPayload",
    "SubmissionResult",
]


@dataclass(frozen=True)
class DocumentRef:
    """Uploaded contract document."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @staticmethod
    def from_path(path: Path) -> DocumentRef:
        content_type, _ = mimetypes.guess_type(path.name)
        return DocumentRef(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class TablePayload:
    name: str
    data: list[list[str]]  # canonical row-major grid, header first
    emails_assigned: list[str]
    cc_emails_assigned: list[str]
    view_mode: str  # "horizontal" | "vertical"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "data": self.data,
            "emailsAssigned": self.emails_assigned,
            "ccEmailsAssigned": self.cc_emails_assigned,
            "viewMode": self.view_mode,
        }


@dataclass(frozen=True)
class SubmissionPayload:
    contract_name: str
    document: DocumentRef
    emails: list[str]
    tables: list[TablePayload] = field(default_factory=list)

    @property
    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def to_form_fields(self) -> dict[str, str]:
        """Non-file multipart fields, JSON-encoded where the webhook expects JSON."""
        return {
            "contractName": self.contract_name,
            "emails": json.dumps(self.emails, ensure_ascii=False),
            "tables": json.dumps([t.to_dict() for t in self.tables], ensure_ascii=False),
            "tableNames": json.dumps(self.table_names, ensure_ascii=False),
        }

    def to_files(self) -> dict[str, tuple[str, bytes, str]]:
        return {
            "contractDocument": (
                self.document.filename,
                self.document.content,
                self.document.content_type,
            )
        }

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view for dry runs (document reduced to name/size)."""
        return {
            "contractName": self.contract_name,
            "contractDocument": {"filename": self.document.filename, "size": self.document.size},
            "emails": self.emails,
            "tables": [t.to_dict() for t in self.tables],
            "tableNames": self.table_names,
        }


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one webhook POST. Failures keep the raw status and body."""
    ok: bool
    status_code: int | None
    body: str = ""
    error: str | None = None

    @property
    def message(self) -> str:
        if self.ok:
            return f"submitted (status={self.status_code})"
        if self.status_code is None:
            return f"submission failed: {self.error}"
        return f"submission failed. Status: {self.status_code} Error: {self.body}"

    def raise_for_error(self) -> None:
        """Raise SubmissionError when the webhook did not accept the payload."""
        if not self.ok:
            raise SubmissionError(self.message, self.status_code, self.body)

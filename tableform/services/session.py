from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from datetime import date
from pathlib import Path

from ..errors import (
    DuplicateEmailError,
    StructureResolutionError,
    TableFormError,
    ValidationError,
)
from ..grid.codec import parse
from ..logging.error_log import ErrorLogBuffer
from ..models.assignment import RecipientAssignment, Role
from ..models.email_entry import EmailEntry
from ..models.error_record import ErrorRecord
from ..models.submission import DocumentRef, SubmissionPayload, TablePayload
from ..models.table import Table
from .recipient_mapper import RecipientMapper
from .structure_source import StructureCatalog, StructureLoadResult
from .table_registry import TableRegistry

"""Form session: the whole in-memory state of one contract form.

Ties the registry and the mapper together for the operations that touch
both (table creation requires primary recipients, table removal cascades
into assignments) and builds the submission payload.

Operations are synchronous and run to completion one at a time. Rejected
operations raise and are also recorded in ``error_log``.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "FormSession",
]


class FormSession:
    def __init__(
        self,
        catalog: StructureCatalog | None = None,
        *,
        rng: random.Random | None = None,
        today: Callable[[], date] | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else StructureCatalog()
        self.registry = TableRegistry(self.catalog, rng=rng, today=today)
        self.mapper = RecipientMapper()
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self.contract_name = ""
        self.document: DocumentRef | None = None
        self.structures_loaded = False
        self.structure_load_error: str | None = None

    # ------------------------------------------------------------------
    # structures
    # ------------------------------------------------------------------
    def load_structures(self, result: StructureLoadResult) -> None:
        """Install fetched (or fallback) structures; enables table creation."""
        self.catalog.replace(result.structures)
        self.structure_load_error = result.error
        self.structures_loaded = True

    # ------------------------------------------------------------------
    # contract form
    # ------------------------------------------------------------------
    def set_contract_name(self, name: str) -> None:
        self.contract_name = name

    def attach_document(self, document: DocumentRef) -> None:
        self.document = document

    def attach_document_file(self, path: Path) -> DocumentRef:
        if not path.is_file():
            raise self._reject("attach_document", str(path), ValidationError(f"document not found: {path}"))
        doc = DocumentRef.from_path(path)
        self.attach_document(doc)
        logger.info(f"document attached: {doc.filename} ({doc.size} bytes)")
        return doc

    # ------------------------------------------------------------------
    # emails
    # ------------------------------------------------------------------
    def add_email(self, address: str = "") -> EmailEntry:
        try:
            return self.mapper.add_email(address)
        except DuplicateEmailError as e:
            raise self._reject("add_email", address, e)

    def update_email(self, email_id: str, address: str) -> EmailEntry:
        try:
            return self.mapper.update_email(email_id, address)
        except TableFormError as e:
            raise self._reject("update_email", email_id, e)

    def remove_email(self, email_id: str) -> bool:
        try:
            removed = self.mapper.remove_email(email_id)
        except TableFormError as e:
            raise self._reject("remove_email", email_id, e)
        if not removed:
            self.error_log.append(
                ErrorRecord.create("remove_email", email_id, "LAST_EMAIL_ENTRY", "at least one email entry is required")
            )
        return removed

    # ------------------------------------------------------------------
    # tables
    # ------------------------------------------------------------------
    def create_table(
        self,
        structure_name: str | None,
        primary_ids: Iterable[str],
        cc_ids: Iterable[str] = (),
        display_name: str | None = None,
    ) -> Table:
        """Create a table from a structure and bind its recipients in one step."""
        primary_ids = list(primary_ids)
        cc_ids = list(cc_ids)
        target = structure_name or ""
        if not self.structures_loaded:
            raise self._reject("create_table", target, ValidationError("table structures are still loading"))
        if not self.mapper.has_non_empty_address():
            raise self._reject(
                "create_table", target,
                ValidationError("Please add at least one email address before creating a table."),
            )
        if not structure_name or not primary_ids:
            raise self._reject(
                "create_table", target,
                ValidationError("Please select a structure and choose at least one email."),
            )
        try:
            structure = self.catalog.resolve(structure_name)
        except StructureResolutionError as e:
            raise self._reject("create_table", target, ValidationError(str(e)))
        try:
            self.mapper.validate_selection(primary_ids, cc_ids)
        except TableFormError as e:
            raise self._reject("create_table", target, e)

        table = self.registry.create_table(structure, display_name)
        try:
            self.mapper.save_assignment(table.id, primary_ids, cc_ids)
        except TableFormError as e:
            # 割当失敗時はテーブル作成も取り消す
            self.registry.remove_table(table.id)
            raise self._reject("create_table", target, e)
        return table

    def remove_table(self, table_id: str) -> Table:
        try:
            table = self.registry.remove_table(table_id)
        except TableFormError as e:
            raise self._reject("remove_table", table_id, e)
        self.mapper.drop_table(table_id)
        return table

    def save_assignment(
        self, table_id: str, primary_ids: Iterable[str], cc_ids: Iterable[str] = ()
    ) -> RecipientAssignment:
        try:
            self.registry.get(table_id)
            return self.mapper.save_assignment(table_id, primary_ids, cc_ids)
        except TableFormError as e:
            raise self._reject("save_assignment", table_id, e)

    def assign(self, table_id: str, email_id: str, role: Role) -> RecipientAssignment:
        try:
            self.registry.get(table_id)
            return self.mapper.assign(table_id, email_id, role)
        except TableFormError as e:
            raise self._reject("assign", table_id, e)

    def unassign(self, table_id: str, email_id: str, role: Role) -> RecipientAssignment:
        try:
            self.registry.get(table_id)
            return self.mapper.unassign(table_id, email_id, role)
        except TableFormError as e:
            raise self._reject("unassign", table_id, e)

    def tables(self) -> list[Table]:
        return self.registry.tables()

    # ------------------------------------------------------------------
    # submission
    # ------------------------------------------------------------------
    def validate_for_submit(self) -> None:
        if not self.contract_name.strip():
            raise self._reject("submit", "", ValidationError("Contract name is required."))
        if self.document is None:
            raise self._reject("submit", "", ValidationError("Contract document is required."))

    def build_payload(self) -> SubmissionPayload:
        """Serialize the session; table data is always horizontal, header first."""
        self.validate_for_submit()
        assert self.document is not None
        tables: list[TablePayload] = []
        for t in self.registry.tables():
            if t.is_blank:
                continue
            assignment = self.mapper.assignment(t.id)
            tables.append(
                TablePayload(
                    name=t.display_name,
                    data=parse(t.canonical_text),
                    emails_assigned=self.mapper.resolve_addresses(assignment.primary_order),
                    cc_emails_assigned=self.mapper.resolve_addresses(assignment.cc_order),
                    view_mode=t.view_mode.value,
                )
            )
        return SubmissionPayload(
            contract_name=self.contract_name,
            document=self.document,
            emails=self.mapper.non_empty_addresses(),
            tables=tables,
        )

    def _reject(self, operation: str, target: str, exc: TableFormError) -> TableFormError:
        self.error_log.record(operation, target, exc)
        logger.debug(f"{operation} rejected: {exc}")
        return exc

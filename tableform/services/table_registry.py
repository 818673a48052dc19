from __future__ import annotations

import logging
import random
import re
from collections.abc import Callable
from dataclasses import replace
from datetime import date

from ..errors import StructureResolutionError, TableNotFoundError, ValidationError
from ..grid.header_guard import enforce_header
from ..grid.projector import ViewMode, apply_double_space_tab, to_canonical_text
from ..models.structure import StructureDefinition
from ..models.table import Table
from .structure_source import StructureCatalog

"""Table registry service.

Owns the live tables in insertion order (display and submission order).
Every edit goes: projector (view text -> canonical) -> header guard -> commit
as a new frozen Table, so derived fields are always recomputed from the
committed canonical text.

Recipient assignments are not kept here; the session cascades removals into
the RecipientMapper.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "TableRegistry",
    "generate_display_name",
]

_WHITESPACE = re.compile(r"\s+")


def generate_display_name(structure_name: str, today: date, rng: random.Random) -> str:
    """`<structure name without whitespace>_<DDMMYYYY>_<5 digit id>`."""
    sanitized = _WHITESPACE.sub("", structure_name)
    unique_id = rng.randint(10000, 99999)
    return f"{sanitized}_{today.strftime('%d%m%Y')}_{unique_id}"


class TableRegistry:
    """Live tables keyed by id, insertion ordered."""

    def __init__(
        self,
        catalog: StructureCatalog,
        *,
        rng: random.Random | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._catalog = catalog
        self._rng = rng if rng is not None else random.Random()
        self._today = today if today is not None else date.today
        self._tables: dict[str, Table] = {}

    # ------------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------------
    def get(self, table_id: str) -> Table:
        try:
            return self._tables[table_id]
        except KeyError:
            raise TableNotFoundError(f"table not found: {table_id}") from None

    def tables(self) -> list[Table]:
        return list(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def create_table(self, structure: StructureDefinition | None, display_name: str | None = None) -> Table:
        """Create a table from ``structure`` (header + sample rows, horizontal view)."""
        if structure is None:
            raise ValidationError("Please select a table structure.")
        name = display_name or generate_display_name(structure.name, self._today(), self._rng)
        table = Table.create(
            display_name=name,
            origin_structure_name=structure.name,
            canonical_text=structure.initial_text(),
        )
        self._tables[table.id] = table
        logger.info(f"table created: {name} (structure={structure.name})")
        return table

    def remove_table(self, table_id: str) -> Table:
        """Remove and return the table; unknown ids are reported and change nothing."""
        if table_id not in self._tables:
            logger.warning(f"remove_table: unknown table id {table_id}")
            raise TableNotFoundError(f"table not found: {table_id}")
        table = self._tables.pop(table_id)
        logger.info(f"table removed: {table.display_name}")
        return table

    # ------------------------------------------------------------------
    # edits
    # ------------------------------------------------------------------
    def edit_text(self, table_id: str, edited_text: str) -> Table:
        """Accept text edited in the table's current view mode."""
        table = self.get(table_id)
        canonical = to_canonical_text(edited_text, table.view_mode)
        canonical = self._guard_header(table, canonical)
        updated = replace(table, canonical_text=canonical)
        self._tables[table_id] = updated
        return updated

    def type_text(self, table_id: str, raw_text: str, caret: int) -> tuple[Table, int]:
        """Apply the double-space -> tab rule at ``caret`` then commit like edit_text.

        Returns the updated table and the caret position to restore.
        """
        text, new_caret = apply_double_space_tab(raw_text, caret)
        return self.edit_text(table_id, text), new_caret

    def set_view_mode(self, table_id: str, mode: ViewMode) -> Table:
        """Switch orientation; canonical text is untouched."""
        table = self.get(table_id)
        if table.view_mode is mode:
            return table
        updated = replace(table, view_mode=mode)
        self._tables[table_id] = updated
        logger.debug(f"view mode {table.display_name}: {mode.value}")
        return updated

    def toggle_view_mode(self, table_id: str) -> Table:
        return self.set_view_mode(table_id, self.get(table_id).view_mode.toggled())

    def _guard_header(self, table: Table, canonical: str) -> str:
        try:
            structure = self._catalog.resolve(table.origin_structure_name)
        except StructureResolutionError as e:
            # 構造定義が消えた場合は補正せずそのまま確定
            logger.debug(f"header guard skipped for {table.display_name}: {e}")
            return canonical
        return enforce_header(canonical, structure)

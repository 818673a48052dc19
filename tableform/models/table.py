from __future__ import annotations

import uuid
from dataclasses import dataclass
from functools import cached_property

from tableform.grid.codec import Grid, parse
from tableform.grid.projector import ViewMode, to_editable_text, to_preview_grid

"""Table model.

canonical_text is the single source of truth and is always horizontal.
parsed_grid, editable_text and preview_grid are derived from it and cached
per instance; since Table is frozen, every edit produces a new instance and
the caches can never go stale.
"""

__all__ = [
    "Table",
]


@dataclass(frozen=True)
class Table:
    id: str
    display_name: str
    origin_structure_name: str  # may stop resolving if the catalog changes
    canonical_text: str
    view_mode: ViewMode = ViewMode.HORIZONTAL

    @staticmethod
    def create(display_name: str, origin_structure_name: str, canonical_text: str) -> Table:
        return Table(
            id=str(uuid.uuid4()),
            display_name=display_name,
            origin_structure_name=origin_structure_name,
            canonical_text=canonical_text,
        )

    @cached_property
    def parsed_grid(self) -> Grid:
        return parse(self.canonical_text)

    @cached_property
    def editable_text(self) -> str:
        return to_editable_text(self.canonical_text, self.view_mode)

    @cached_property
    def preview_grid(self) -> Grid:
        return to_preview_grid(self.canonical_text, self.view_mode)

    @property
    def is_blank(self) -> bool:
        return self.canonical_text.strip() == ""

    @property
    def header(self) -> list[str]:
        return self.parsed_grid[0] if self.parsed_grid else []

    @property
    def data_rows(self) -> Grid:
        return self.parsed_grid[1:]

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

"""StructureDefinition model.

A structure definition is the externally supplied template a table is
created from: a unique name, the ordered column list (canonical header) and
optional sample rows. tableform never mutates one.

Wire record (structure source webhook):
    {"table_id": 1, "name": "Employee Data", "columns": [...], "sampleData": [{...}]}
"""

__all__ = [
    "StructureDefinition",
]


@dataclass(frozen=True)
class StructureDefinition:
    """Read-only table template."""
    structure_id: int
    name: str  # unique within a catalog
    columns: tuple[str, ...]  # canonical column order / header text
    sample_rows: tuple[Mapping[str, Any], ...] = field(default_factory=tuple)

    @property
    def header_line(self) -> str:
        return "\t".join(self.columns)

    def render_sample_rows(self) -> list[str]:
        """Sample rows as tab-joined lines in column order ("" for missing fields)."""
        lines = []
        for row in self.sample_rows:
            cells = []
            for col in self.columns:
                value = row.get(col)
                cells.append("" if value is None else str(value))
            lines.append("\t".join(cells))
        return lines

    def initial_text(self) -> str:
        """Canonical text for a freshly created table: header plus sample rows."""
        return "\n".join([self.header_line, *self.render_sample_rows()])

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> StructureDefinition:
        """Build from a structure-source record (already schema-validated)."""
        sample = record.get("sampleData") or []
        return StructureDefinition(
            structure_id=int(record["table_id"]),
            name=str(record["name"]),
            columns=tuple(str(c) for c in record["columns"]),
            sample_rows=tuple(dict(r) for r in sample),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "table_id": self.structure_id,
            "name": self.name,
            "columns": list(self.columns),
        }
        if self.sample_rows:
            record["sampleData"] = [dict(r) for r in self.sample_rows]
        return record

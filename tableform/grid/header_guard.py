from __future__ import annotations

from tableform.models.structure import StructureDefinition

"""Header guard: the first canonical row must equal the structure header.

Operates on canonical (horizontal) text only, so header protection does not
depend on the view mode the user is editing in.
"""

__all__ = [
    "enforce_header",
    "header_matches",
]


def header_matches(canonical_text: str, structure: StructureDefinition) -> bool:
    lines = canonical_text.strip().split("\n")
    return lines[0].strip() == structure.header_line


def enforce_header(canonical_text: str, structure: StructureDefinition | None) -> str:
    """Return canonical text whose first line is exactly the structure's header line.

    When ``structure`` is None (origin no longer resolves) the text is
    returned untouched. If the header already matches (ignoring surrounding
    whitespace) only leading blank lines and the header line itself are
    normalized; the data lines are kept as typed. Otherwise the trimmed text
    is rebuilt with the header line swapped in. An empty proposal becomes
    just the header line.
    """
    if structure is None:
        return canonical_text
    if header_matches(canonical_text, structure):
        lines = canonical_text.lstrip().split("\n")
    else:
        lines = canonical_text.strip().split("\n")
    lines[0] = structure.header_line
    return "\n".join(lines)

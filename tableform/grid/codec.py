from __future__ import annotations

from collections.abc import Sequence

"""Grid codec: tab/newline delimited text <-> list-of-rows grid.

Pasted spreadsheet text is tab separated within a row and newline separated
between rows. parse() trims the input and every cell; rows may be jagged and
are never padded here. transpose() pads missing cells with "" so that a
jagged grid comes back rectangular; applying it twice does not restore the
original jagged shape.
"""

__all__ = [
    "Grid",
    "parse",
    "transpose",
    "serialize",
    "is_rectangular",
]

Grid = list[list[str]]

CELL_SEP = "\t"
ROW_SEP = "\n"


def parse(text: str) -> Grid:
    """Split text into rows and cells.

    A wholly blank input yields ``[]``. Leading/trailing whitespace of the
    whole input and of each cell is stripped (lossy by design).
    """
    if not text.strip():
        return []
    lines = text.strip().split(ROW_SEP)
    return [[cell.strip() for cell in line.split(CELL_SEP)] for line in lines]


def transpose(grid: Sequence[Sequence[str]]) -> Grid:
    """Swap rows and columns, filling cells missing from short rows with ""."""
    if not grid:
        return []
    width = max(len(row) for row in grid)
    return [
        [row[col] if col < len(row) else "" for row in grid]
        for col in range(width)
    ]


def serialize(grid: Sequence[Sequence[str]]) -> str:
    return ROW_SEP.join(CELL_SEP.join(row) for row in grid)


def is_rectangular(grid: Sequence[Sequence[str]]) -> bool:
    """True when every row has the same length (transpose is then its own inverse)."""
    return len({len(row) for row in grid}) <= 1

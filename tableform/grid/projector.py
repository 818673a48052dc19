from __future__ import annotations

from enum import Enum

import pandas as pd

from tableform.grid.codec import Grid, parse, serialize, transpose

"""View projector.

A table's canonical text is always horizontal (row-major, header first). The
textarea and the preview are projections of it into the table's current view
mode; the preview is derived from canonical text only, never from what is in
the textarea, so the two views cannot drift apart.

Vertical -> horizontal uses transpose again, which only round-trips exactly
on rectangular data (jagged pastes come back padded with empty cells).
"""

__all__ = [
    "ViewMode",
    "to_editable_text",
    "to_canonical_text",
    "to_preview_grid",
    "to_preview_frame",
    "apply_double_space_tab",
]


class ViewMode(Enum):
    """Orientation a table is viewed and edited in. Values are the wire values."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def toggled(self) -> ViewMode:
        return ViewMode.VERTICAL if self is ViewMode.HORIZONTAL else ViewMode.HORIZONTAL


def to_editable_text(canonical_text: str, mode: ViewMode) -> str:
    """Project canonical text into the text shown for editing in ``mode``."""
    if mode is ViewMode.HORIZONTAL:
        return canonical_text
    grid = parse(canonical_text)
    if not grid:
        return canonical_text
    return serialize(transpose(grid))


def to_canonical_text(edited_text: str, mode: ViewMode) -> str:
    """Fold text edited in ``mode`` back into canonical (horizontal) text."""
    if mode is ViewMode.HORIZONTAL:
        return edited_text
    return serialize(transpose(parse(edited_text)))


def to_preview_grid(canonical_text: str, mode: ViewMode) -> Grid:
    grid = parse(canonical_text)
    if mode is ViewMode.VERTICAL:
        return transpose(grid)
    return grid


def to_preview_frame(canonical_text: str, mode: ViewMode) -> pd.DataFrame:
    """Preview grid as a DataFrame: first row -> column labels, rest -> data rows.

    Rows are padded to the widest row so the frame is rectangular; the data
    row count is always ``len(preview_grid) - 1``.
    """
    grid = to_preview_grid(canonical_text, mode)
    if not grid:
        return pd.DataFrame()
    width = max(len(row) for row in grid)
    padded = [row + [""] * (width - len(row)) for row in grid]
    return pd.DataFrame(padded[1:], columns=padded[0], dtype=str)


def apply_double_space_tab(text: str, caret: int) -> tuple[str, int]:
    """Turn two spaces typed just before ``caret`` into one tab.

    For users who cannot type a real tab into the textarea. Only the pair
    immediately before the caret is considered; the caret ends up right
    after the inserted tab.

    >>> apply_double_space_tab("a  ", 3)
    ('a\\t', 2)
    >>> apply_double_space_tab("a b", 3)
    ('a b', 3)
    """
    if caret < 2 or caret > len(text):
        return text, caret
    if text[caret - 2:caret] != "  ":
        return text, caret
    new_text = text[:caret - 2] + "\t" + text[caret:]
    return new_text, caret - 1

"""Grid text handling: codec, view projection and header protection."""

from .codec import Grid, is_rectangular, parse, serialize, transpose
from .projector import (
    ViewMode,
    apply_double_space_tab,
    to_canonical_text,
    to_editable_text,
    to_preview_frame,
    to_preview_grid,
)

__all__ = [
    "Grid",
    "parse",
    "serialize",
    "transpose",
    "is_rectangular",
    "ViewMode",
    "to_editable_text",
    "to_canonical_text",
    "to_preview_grid",
    "to_preview_frame",
    "apply_double_space_tab",
]

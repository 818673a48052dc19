from __future__ import annotations

import zipfile
from pathlib import Path

import pandas as pd

from tableform.grid.codec import serialize

"""Spreadsheet file reader for the CLI.

Produces the same tab/newline text a user would get by copying cells out of
a spreadsheet, so files go through exactly the same path as pasted text.

- .xlsx / .xls: first sheet (or ``sheet``), read without a header row and
  with every cell as a string; empty cells become ""
- .csv: comma separated, same treatment
- anything else: read as UTF-8 text, assumed to be tab separated already

Files that cannot be read (empty csv, undecodable text, broken workbook)
raise TableFileError.
"""

__all__ = [
    "read_table_text",
    "TableFileError",
    "SheetNotFoundError",
]

EXCEL_SUFFIXES = {".xlsx", ".xls"}


class TableFileError(Exception):
    """Raised when a table file cannot be turned into table text."""


class SheetNotFoundError(TableFileError):
    """Raised when the requested sheet is not in the workbook."""


def _frame_to_text(df: pd.DataFrame) -> str:
    # 全列 NaN の末尾行は貼り付け時と同様に落とす
    df = df.dropna(how="all")
    rows = [["" if pd.isna(v) else str(v) for v in row] for row in df.itertuples(index=False)]
    return serialize(rows)


def _read_excel(path: Path, sheet: str | None) -> str:
    xls = pd.ExcelFile(path)
    names = [str(n) for n in xls.sheet_names]
    if sheet is not None and sheet not in names:
        raise SheetNotFoundError(f"sheet '{sheet}' not found in {path.name}: {names}")
    target = sheet if sheet is not None else names[0]
    df = xls.parse(target, header=None, dtype=str, keep_default_na=False, na_values=[""])
    return _frame_to_text(df)


def read_table_text(path: Path, sheet: str | None = None) -> str:
    """Read ``path`` and return tab/newline delimited text."""
    suffix = path.suffix.lower()
    try:
        if suffix in EXCEL_SUFFIXES:
            return _read_excel(path, sheet)
        if suffix == ".csv":
            df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, na_values=[""])
            return _frame_to_text(df)
        return path.read_text(encoding="utf-8")
    except pd.errors.EmptyDataError as e:
        raise TableFileError(f"table file is empty: {path.name}") from e
    except UnicodeDecodeError as e:
        raise TableFileError(f"table file is not UTF-8 text: {path.name}") from e
    except (zipfile.BadZipFile, ValueError) as e:
        raise TableFileError(f"cannot read table file {path.name}: {e}") from e

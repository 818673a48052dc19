from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from tableform.models.error_record import ErrorRecord

"""Rejected-operation log for one form session.

Every operation the session refuses (duplicate email, table without primary
recipient, unknown table id, ...) and every failed submission is kept as an
ErrorRecord. The CLI writes them out at the end of a run as JSON Lines to
`logs/errors-YYYYMMDD-HHMMSS.log` (UTC); a run without rejections leaves no
file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Rejections of the current session, in the order they happened."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._written: Counter[str] = Counter()
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 初回書き出し時に 1 度だけ決める
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        """Records not yet written out."""
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def record(self, operation: str, target: str, exc: BaseException) -> ErrorRecord:
        """Log a rejected operation; error_type comes from the exception class."""
        rec = ErrorRecord.from_exception(operation, target, exc)
        self._pending.append(rec)
        return rec

    def counts(self) -> Counter[str]:
        """error_type -> number of records, written and pending together."""
        return self._written + Counter(r.error_type for r in self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the run's log file.

        Returns the file path, or None when nothing was pending.
        """
        if not self._pending:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._pending:
                f.write(r.to_json_line() + "\n")
        self._written.update(r.error_type for r in self._pending)
        self._pending.clear()
        return fp

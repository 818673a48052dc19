from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the rejected-operation log.

One record per rejected mutation or failed submission, written as a JSON
line by ErrorLogBuffer. The key set is fixed; to_json_line never adds keys.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        operation: Operation that was rejected (e.g. "update_email", "submit")
        target: Table / email id or display name the operation addressed ("" if none)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable reason
    """
    timestamp: str  # ISO8601 UTC
    operation: str
    target: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(operation: str, target: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            operation=operation,
            target=target,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_exception(operation: str, target: str, exc: BaseException) -> ErrorRecord:
        """Build a record whose error_type is derived from the exception class name."""
        return ErrorRecord.create(operation, target, _upper_snake(type(exc).__name__), str(exc))

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


def _upper_snake(name: str) -> str:
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0 and not name[i - 1].isupper():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)

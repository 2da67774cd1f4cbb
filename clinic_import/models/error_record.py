from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .import_result import RowOutcome

"""One line of the JSON Lines error log written after each import run.

Key set is fixed: timestamp, entity, row, error_type, message. ``row`` is the
source row number shown to the user (header is row 1); run-level failures that
can not be pinned to a row use -1.
"""

__all__ = [
    "ErrorRecord",
    "RUN_LEVEL_ROW",
]

RUN_LEVEL_ROW = -1


def _utc_stamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601 UTC, sufijo Z
    entity: str
    row: int
    error_type: str  # UPPER_SNAKE_CASE
    message: str

    @classmethod
    def create(cls, entity: str, row: int, error_type: str, message: str) -> ErrorRecord:
        return cls(timestamp=_utc_stamp(), entity=entity, row=row, error_type=error_type, message=message)

    @classmethod
    def from_outcome(cls, entity: str, outcome: RowOutcome) -> ErrorRecord:
        """Record for a failed row, reusing the message shown in the result."""
        return cls.create(entity, outcome.row_number, outcome.error_type or "ROW_ERROR", outcome.message)

    @classmethod
    def run_failure(cls, entity: str, error: BaseException) -> ErrorRecord:
        return cls.create(entity, RUN_LEVEL_ROW, "RUN_ABORTED", str(error))

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

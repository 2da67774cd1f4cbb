from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from clinic_import.models.error_record import ErrorRecord

"""Per-run error log.

Failed rows are collected while the executor runs and written in one go when
the run ends, as JSON Lines in ``<logs_dir>/errors-YYYYMMDD-HHMMSS.log``
(UTC, stamped on first use). Nothing is created for a clean run.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "DEFAULT_LOGS_DIR",
]

DEFAULT_LOGS_DIR = Path("./logs")
FILE_STAMP = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path | str | None = None) -> None:
        self.logs_dir = DEFAULT_LOGS_DIR if logs_dir is None else Path(logs_dir)
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        """Target file; the name is fixed the first time it is asked for."""
        if self._path is None:
            self._path = self.logs_dir / f"errors-{datetime.now(UTC).strftime(FILE_STAMP)}.log"
        return self._path

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the file and empty the buffer.

        Returns:
            the file written, or None when there was nothing to write
        """
        if not self._pending:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = "".join(r.to_json_line() + "\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(payload)
        self._pending = []
        return path

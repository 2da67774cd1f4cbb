from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_result import ImportProgress, ImportResult, ProgressStatus, RowOutcome
from ..models.row_data import RowData

"""Progress / log reporting for import runs.

The executor talks to an observer interface (ImportListener) and never to a
UI directly. Two listeners ship here:

- ProgressReporter: keeps the "current progress" record and a timestamped
  in-memory log, for the import screen or a headless test harness.
- TerminalProgressListener: a tqdm bar, shown only on a TTY so CI logs are not
  filled with ANSI control sequences.

Listeners are purely observational; nothing they do changes what the
executor imports.
"""

__all__ = [
    "ImportListener",
    "LogEntry",
    "ProgressReporter",
    "TerminalProgressListener",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ImportListener:
    """Observer for import runs. Subclasses override what they need."""

    def on_run_start(self, entity: str, total: int) -> None:
        pass

    def on_row_start(self, index: int, total: int, row: RowData, label: str) -> None:
        pass

    def on_row_result(self, index: int, total: int, outcome: RowOutcome, label: str) -> None:
        pass

    def on_run_complete(self, result: ImportResult) -> None:
        pass


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str  # info | success | error
    message: str

    @property
    def line(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.message}"


class ProgressReporter(ImportListener):
    """In-memory progress record plus timestamped event log."""

    def __init__(self) -> None:
        self.log: list[LogEntry] = []
        self.current: ImportProgress | None = None

    def _append(self, level: str, message: str) -> None:
        self.log.append(LogEntry(timestamp=datetime.now(UTC), level=level, message=message))

    def lines(self) -> list[str]:
        return [e.line for e in self.log]

    def clear(self) -> None:
        self.log.clear()
        self.current = None

    def on_run_start(self, entity: str, total: int) -> None:
        self.current = None
        self._append("info", f"Iniciando importación de {entity}: {total} registros")

    def on_row_start(self, index: int, total: int, row: RowData, label: str) -> None:
        self.current = ImportProgress(
            current_index=index,
            total=total,
            current_item_label=label,
            status=ProgressStatus.PROCESSING,
            message=f"Procesando {label}",
        )
        self._append("info", f"[{index}/{total}] Procesando {label}")

    def on_row_result(self, index: int, total: int, outcome: RowOutcome, label: str) -> None:
        status = ProgressStatus.SUCCESS if outcome.success else ProgressStatus.ERROR
        self.current = ImportProgress(
            current_index=index,
            total=total,
            current_item_label=label,
            status=status,
            message=outcome.message,
        )
        if outcome.success:
            self._append("success", f"[{index}/{total}] {label} importado")
        else:
            self._append("error", f"[{index}/{total}] {outcome.message}")

    def on_run_complete(self, result: ImportResult) -> None:
        self._append(
            "info",
            f"Importación finalizada: {result.success_count} exitosos, "
            f"{result.error_count} errores de {result.total_count}",
        )


class TerminalProgressListener(ImportListener):
    """tqdm progress bar for CLI runs (TTY only)."""

    def __init__(self, *, description: str = "Importando") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        self.success = 0
        self.failed = 0

    def on_run_start(self, entity: str, total: int) -> None:
        self.success = 0
        self.failed = 0
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=f"{self.description} {entity}",
                unit="fila",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def on_row_result(self, index: int, total: int, outcome: RowOutcome, label: str) -> None:
        if outcome.success:
            self.success += 1
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(ok=self.success, err=self.failed)

    def on_run_complete(self, result: ImportResult) -> None:
        self.close()

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

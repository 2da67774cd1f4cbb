from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

"""Import run result models.

ImportResult is the immutable summary of one run over one entity type.
ImportProgress is the transient "current row" record overwritten on every row.
ResultAccumulator collects row outcomes while the run is in flight and freezes
them into an ImportResult when the run completes.
"""

__all__ = [
    "ProgressStatus",
    "RowOutcome",
    "ImportResult",
    "ImportProgress",
    "ResultAccumulator",
]


class ProgressStatus(Enum):
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RowOutcome:
    """Outcome of a single row: success with the inserted record id, or error."""
    row_number: int
    success: bool
    message: str
    error_type: str | None = None  # UPPER_SNAKE, solo en errores
    record_id: object | None = None


@dataclass(frozen=True)
class ImportResult:
    """Summary of a completed run.

    ``success_count + len(error_messages) == total_count`` always holds.
    """
    entity: str
    success_count: int
    error_messages: tuple[str, ...]
    total_count: int
    outcomes: tuple[RowOutcome, ...] = ()
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def error_count(self) -> int:
        return len(self.error_messages)

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def all_succeeded(self) -> bool:
        return self.error_count == 0


@dataclass(frozen=True)
class ImportProgress:
    current_index: int  # 1-based
    total: int
    current_item_label: str
    status: ProgressStatus
    message: str


@dataclass
class ResultAccumulator:
    """Mutable collector used by the executor during a run."""
    entity: str
    total_count: int
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    outcomes: list[RowOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def processed_count(self) -> int:
        return len(self.outcomes)

    def add(self, outcome: RowOutcome) -> None:
        self.outcomes.append(outcome)

    def build(self) -> ImportResult:
        return ImportResult(
            entity=self.entity,
            success_count=self.success_count,
            error_messages=tuple(o.message for o in self.outcomes if not o.success),
            total_count=self.total_count,
            outcomes=tuple(self.outcomes),
            start_time=self.start_time,
            end_time=datetime.now(UTC),
        )

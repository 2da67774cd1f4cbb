from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Validation result models.

CellCheck is the answer for one cell; ValidationFinding is one entry of the
aggregated list shown under the staging grid.
"""

__all__ = [
    "Severity",
    "CellCheck",
    "ValidationFinding",
]


class Severity(Enum):
    """ERROR blocks the import; WARNING is advisory only."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class CellCheck:
    valid: bool
    message: str | None = None
    severity: Severity | None = None

    @classmethod
    def ok(cls) -> CellCheck:
        return cls(valid=True)

    @classmethod
    def error(cls, message: str) -> CellCheck:
        return cls(valid=False, message=message, severity=Severity.ERROR)

    @classmethod
    def warning(cls, message: str) -> CellCheck:
        return cls(valid=False, message=message, severity=Severity.WARNING)


@dataclass(frozen=True)
class ValidationFinding:
    """Aggregated validation entry (row index is 0-based within the grid)."""
    row_index: int
    column: str
    message: str
    severity: Severity

    @property
    def is_blocking(self) -> bool:
        return self.severity is Severity.ERROR
